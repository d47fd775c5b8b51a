import pytest

from storefront import (
    Cart,
    CartStorage,
    CheckoutError,
    DeliveryValidationError,
    JsonFileStorage,
    MemoryStorage,
    OrderError,
    StorefrontClient,
    validate_delivery,
    PLACE_ORDER_ERROR,
)

DUNE = {"id": "b1", "title": "Dune", "author": "Frank Herbert", "price": 15.0}
EMMA = {"id": "b2", "title": "Emma", "author": "Jane Austen", "price": 7.25}

DELIVERY = {
    "fullName": "Paul Atreides",
    "phone": "555-0100",
    "address1": "1 Keep Road",
    "address2": "",
    "city": "Arrakeen",
    "postalCode": "10191",
    "country": "Arrakis",
}


# ------------------------- Cart -------------------------------
def test_add_appends_then_increments():
    cart = Cart().add(DUNE).add(EMMA).add(DUNE)
    assert [(line.book_id, line.quantity) for line in cart.lines] == [("b1", 2), ("b2", 1)]
    assert cart.item_count == 3
    assert cart.total == 37.25


def test_cart_is_immutable():
    empty = Cart()
    cart = empty.add(DUNE)
    assert empty.is_empty
    assert not cart.is_empty


def test_decrease_clamps_at_one():
    cart = Cart().add(DUNE).increase("b1").decrease("b1").decrease("b1").decrease("b1")
    assert cart.get("b1").quantity == 1


def test_remove_and_clear():
    cart = Cart().add(DUNE).add(EMMA).remove("b1")
    assert [line.book_id for line in cart.lines] == ["b2"]
    assert cart.cleared().is_empty


def test_unknown_book_changes_nothing():
    cart = Cart().add(DUNE)
    assert cart.increase("zzz") == cart
    assert cart.remove("zzz") == cart


def test_payload_shape():
    cart = Cart().add(DUNE).add(DUNE)
    assert cart.to_payload() == [dict(DUNE, quantity=2)]
    assert Cart.from_payload(cart.to_payload()) == cart


def test_validate_delivery_skips_address2():
    assert validate_delivery(DELIVERY) == {}
    errors = validate_delivery(dict(DELIVERY, fullName="  ", city=None, address2=""))
    assert errors == {"fullName": "Full Name is required.", "city": "City is required."}


def test_json_file_storage_roundtrip(tmp_path):
    path = tmp_path / "state" / "storage.json"
    storage = JsonFileStorage(path)
    assert storage.load("cart", []) == []
    storage.save("cart", [{"id": "b1", "quantity": 1}])
    storage.save("delivery", {"fullName": "X"})
    storage.remove("delivery")
    assert JsonFileStorage(path).load("cart") == [{"id": "b1", "quantity": 1}]
    assert JsonFileStorage(path).load("delivery") is None


# ------------------------- Client -----------------------------
@pytest.fixture
def storefront(client):
    return StorefrontClient("http://testserver", storage=MemoryStorage(), session=client)


def test_cart_operations_persist_in_storage(storefront):
    storefront.add_to_cart(DUNE)
    storefront.add_to_cart(EMMA)
    storefront.increase_quantity("b2")
    storefront.decrease_quantity("b1")
    storefront.remove_from_cart("b1")
    assert storefront.storage.load("cart") == [dict(EMMA, quantity=2)]


def test_clear_cart_needs_confirmation(storefront):
    storefront.add_to_cart(DUNE)
    assert storefront.clear_cart(lambda: False) is False
    assert not storefront.cart.is_empty
    assert storefront.clear_cart(lambda: True) is True
    assert storefront.cart.is_empty


def test_checkout_validates_delivery_before_calling_api(storefront, stripe_calls):
    storefront.add_to_cart(DUNE)
    with pytest.raises(DeliveryValidationError) as exc:
        storefront.checkout(dict(DELIVERY, phone=""))
    assert exc.value.errors == {"phone": "Phone Number is required."}
    assert stripe_calls == []


def test_checkout_with_empty_cart_shows_retry_message(storefront, stripe_calls):
    with pytest.raises(CheckoutError) as exc:
        storefront.checkout(DELIVERY)
    assert str(exc.value) == PLACE_ORDER_ERROR


def test_full_purchase_flow(storefront, stripe_calls, client):
    book = client.post("/books", data={"title": "Dune", "author": "Frank Herbert", "price": "15", "stock": "3"}).json()
    storefront.add_to_cart(storefront.get_book(book["id"]))
    storefront.add_to_cart(book)

    url = storefront.checkout(DELIVERY)
    assert url == "https://checkout.stripe.com/c/pay/cs_test_123"
    assert stripe_calls[0]["line_items"][0]["quantity"] == 2
    assert storefront.storage.load("delivery") == DELIVERY

    order = storefront.confirm_order("http://localhost:5173/orders?status=success&session_id=cs_test_123")
    assert order["orderStatus"] == "Processing"
    assert order["paymentId"] == "cs_test_123"
    assert order["totalAmount"] == 30.0
    assert order["books"][0]["bookId"] == book["id"]
    assert order["delivery"]["city"] == "Arrakeen"

    assert storefront.cart.is_empty
    assert storefront.storage.load("delivery") is None

    # reloading the confirmation page must not record a second order
    assert storefront.confirm_order("http://localhost:5173/orders?status=success") is None
    assert len(storefront.list_orders()) == 1


def test_confirm_without_success_indicator_does_nothing(storefront):
    storefront.add_to_cart(DUNE)
    assert storefront.confirm_order("http://localhost:5173/checkout?status=cancel") is None
    assert storefront.list_orders() == []
    assert not storefront.cart.is_empty


def test_confirm_uses_stashed_session_id(storefront, stripe_calls):
    storefront.add_to_cart(DUNE)
    storefront.checkout(DELIVERY)
    order = storefront.confirm_order("http://localhost:5173/orders?status=success")
    assert order["paymentId"] == "cs_test_123"


def test_cancel_flow_reflects_server_rule(storefront, mongo):
    storefront.add_to_cart(DUNE)
    order = storefront.confirm_order("http://x/orders?status=success&session_id=cs_1")
    assert order["cancelable"] is True

    assert storefront.cancel_order(order["id"], lambda: False) is None
    cancelled = storefront.cancel_order(order["id"], lambda: True)
    assert cancelled["orderStatus"] == "Cancelled"
    assert storefront.list_orders()[0]["cancelable"] is False

    with pytest.raises(OrderError) as exc:
        storefront.cancel_order(order["id"], lambda: True)
    assert str(exc.value) == "Order already cancelled"


def test_cart_storage_is_abstract():
    with pytest.raises(TypeError):
        CartStorage()


def test_clear_cart_stores_an_empty_cart(storefront):
    storefront.add_to_cart(DUNE)
    storefront.clear_cart(lambda: True)
    assert storefront.storage.load("cart") == []
