"""
Storefront client

UI-side logic of the shop without any rendering: the cart, delivery form
validation, the checkout hand-off to the payment page and the order
confirmation that runs when the browser comes back from it.

State that a browser would keep in local/session storage goes through a
CartStorage so it can be swapped for memory or a JSON file.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

import requests

logger = logging.getLogger(__name__)

CART_KEY = "cart"
DELIVERY_KEY = "delivery"
PAYMENT_SESSION_KEY = "paymentSession"

PLACE_ORDER_ERROR = "Error placing order. Please try again."
NO_REDIRECT_ERROR = "Something went wrong. Please try again."

REQUIRED_DELIVERY_FIELDS = {
    "fullName": "Full Name is required.",
    "phone": "Phone Number is required.",
    "address1": "Address Line 1 is required.",
    "city": "City is required.",
    "postalCode": "Postal Code is required.",
    "country": "Country is required.",
}


class StorefrontError(Exception):
    pass


class DeliveryValidationError(StorefrontError):
    def __init__(self, errors: Dict[str, str]):
        super().__init__(", ".join(errors.values()))
        self.errors = errors


class CheckoutError(StorefrontError):
    pass


class OrderError(StorefrontError):
    pass


# ------------------------- Storage ----------------------------
class CartStorage(ABC):
    """Key/value store for JSON-compatible values"""

    @abstractmethod
    def load(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(CartStorage):
    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, key, default=None):
        raw = self._data.get(key)
        return default if raw is None else json.loads(raw)

    def save(self, key, value):
        self._data[key] = json.dumps(value)

    def remove(self, key):
        self._data.pop(key, None)


class JsonFileStorage(CartStorage):
    """All keys in one JSON file; every write replaces the whole file"""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f)

    def load(self, key, default=None):
        return self._read().get(key, default)

    def save(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


# ------------------------- Cart -------------------------------
def _book_id(book: Dict[str, Any]) -> Optional[str]:
    return book.get("id") or book.get("_id") or book.get("bookId")


@dataclass(frozen=True)
class CartLine:
    book: Dict[str, Any]
    quantity: int = 1

    @property
    def book_id(self) -> Optional[str]:
        return _book_id(self.book)

    @property
    def title(self) -> str:
        return self.book.get("title", "")

    @property
    def price(self) -> float:
        return float(self.book.get("price", 0))

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class Cart:
    """Immutable cart; every change returns a new Cart"""

    lines: Tuple[CartLine, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, items: Optional[List[Dict[str, Any]]]) -> "Cart":
        lines = []
        for item in items or []:
            book = {k: v for k, v in item.items() if k != "quantity"}
            lines.append(CartLine(book=book, quantity=max(1, int(item.get("quantity", 1)))))
        return cls(tuple(lines))

    def to_payload(self) -> List[Dict[str, Any]]:
        """Book snapshots with their quantity, the shape /checkout and /orders accept"""
        return [dict(line.book, quantity=line.quantity) for line in self.lines]

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total(self) -> float:
        return round(sum(line.subtotal for line in self.lines), 2)

    def get(self, book_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.book_id == book_id:
                return line
        return None

    def _map(self, book_id: str, fn: Callable[[CartLine], CartLine]) -> "Cart":
        return Cart(tuple(fn(line) if line.book_id == book_id else line for line in self.lines))

    def add(self, book: Dict[str, Any]) -> "Cart":
        book_id = _book_id(book)
        if self.get(book_id) is not None:
            return self.increase(book_id)
        return Cart(self.lines + (CartLine(book=dict(book)),))

    def increase(self, book_id: str) -> "Cart":
        return self._map(book_id, lambda line: replace(line, quantity=line.quantity + 1))

    def decrease(self, book_id: str) -> "Cart":
        # never below 1, removal is explicit
        return self._map(book_id, lambda line: replace(line, quantity=max(1, line.quantity - 1)))

    def remove(self, book_id: str) -> "Cart":
        return Cart(tuple(line for line in self.lines if line.book_id != book_id))

    def cleared(self) -> "Cart":
        return Cart()


def validate_delivery(delivery: Dict[str, Any]) -> Dict[str, str]:
    """Field -> message for every blank required field (address2 is optional)"""
    errors = {}
    for name, message in REQUIRED_DELIVERY_FIELDS.items():
        if not str(delivery.get(name) or "").strip():
            errors[name] = message
    return errors


# ------------------------- Client -----------------------------
class StorefrontClient:
    """
    Talks to the bookshop API on behalf of one browser.

    Args:
        base_url: API root, e.g. http://localhost:8000
        storage: where the cart and checkout stash live
        session: requests.Session or anything with the same get/post/put/delete
        timeout: seconds per request
    """

    def __init__(self, base_url: str, storage: Optional[CartStorage] = None, session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.storage = storage or MemoryStorage()
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs):
        return getattr(self.session, method)(self._url(path), timeout=self.timeout, **kwargs)

    @staticmethod
    def _message(resp) -> str:
        try:
            return resp.json().get("message") or resp.text
        except ValueError:
            return resp.text

    # ----- catalog -----
    def list_books(self) -> List[Dict[str, Any]]:
        resp = self._request("get", "/books")
        if resp.status_code != 200:
            raise StorefrontError(self._message(resp))
        return resp.json()

    def get_book(self, book_id: str) -> Dict[str, Any]:
        resp = self._request("get", f"/books/{book_id}")
        if resp.status_code != 200:
            raise StorefrontError(self._message(resp))
        return resp.json()

    # ----- cart -----
    @property
    def cart(self) -> Cart:
        return Cart.from_payload(self.storage.load(CART_KEY, []))

    def save_cart(self, cart: Cart) -> Cart:
        self.storage.save(CART_KEY, cart.to_payload())
        return cart

    def add_to_cart(self, book: Dict[str, Any]) -> Cart:
        return self.save_cart(self.cart.add(book))

    def increase_quantity(self, book_id: str) -> Cart:
        return self.save_cart(self.cart.increase(book_id))

    def decrease_quantity(self, book_id: str) -> Cart:
        return self.save_cart(self.cart.decrease(book_id))

    def remove_from_cart(self, book_id: str) -> Cart:
        return self.save_cart(self.cart.remove(book_id))

    def clear_cart(self, confirm: Callable[[], bool]) -> bool:
        """Empty the cart if confirm() agrees; returns whether it was cleared"""
        if not confirm():
            return False
        self.save_cart(self.cart.cleared())
        return True

    # ----- checkout -----
    def checkout(self, delivery: Dict[str, Any]) -> str:
        """Start a payment session and return the URL to send the browser to"""
        errors = validate_delivery(delivery)
        if errors:
            raise DeliveryValidationError(errors)

        cart = self.cart
        try:
            resp = self._request("post", "/checkout", json={"cart": cart.to_payload(), "delivery": delivery})
        except requests.RequestException as e:
            logger.warning("Checkout request failed: %s", e)
            raise CheckoutError(PLACE_ORDER_ERROR)
        if resp.status_code != 200:
            logger.warning("Checkout rejected (%s): %s", resp.status_code, self._message(resp))
            raise CheckoutError(PLACE_ORDER_ERROR)

        data = resp.json()
        url = data.get("url")
        if not url:
            raise CheckoutError(NO_REDIRECT_ERROR)

        self.storage.save(DELIVERY_KEY, delivery)
        if data.get("sessionId"):
            self.storage.save(PAYMENT_SESSION_KEY, data["sessionId"])
        return url

    def confirm_order(self, redirect_url: str) -> Optional[Dict[str, Any]]:
        """
        Record the order after the payment page redirects back.

        Returns the created order, or None when the redirect does not signal
        success or there is nothing in the cart to record.
        """
        query = parse_qs(urlsplit(redirect_url).query)
        if query.get("status", [None])[0] != "success":
            return None

        cart = self.cart
        if cart.is_empty:
            return None

        session_ids = query.get("session_id")
        payment_id = session_ids[0] if session_ids else self.storage.load(PAYMENT_SESSION_KEY)
        body = {
            "cart": cart.to_payload(),
            "delivery": self.storage.load(DELIVERY_KEY, {}),
            "paymentId": payment_id,
            "totalAmount": cart.total,
        }
        try:
            resp = self._request("post", "/orders", json=body)
        except requests.RequestException as e:
            logger.warning("Order confirmation failed: %s", e)
            raise OrderError(PLACE_ORDER_ERROR)
        if resp.status_code != 201:
            logger.warning("Order confirmation rejected (%s): %s", resp.status_code, self._message(resp))
            raise OrderError(PLACE_ORDER_ERROR)

        self.save_cart(cart.cleared())
        self.storage.remove(DELIVERY_KEY)
        self.storage.remove(PAYMENT_SESSION_KEY)
        return resp.json()

    # ----- orders -----
    def list_orders(self) -> List[Dict[str, Any]]:
        resp = self._request("get", "/orders")
        if resp.status_code != 200:
            raise OrderError(self._message(resp))
        return resp.json()

    def cancel_order(self, order_id: str, confirm: Callable[[], bool]) -> Optional[Dict[str, Any]]:
        """Cancel after confirmation; the server decides whether the order may be cancelled"""
        if not confirm():
            return None
        resp = self._request("put", f"/orders/cancel/{order_id}")
        if resp.status_code != 200:
            raise OrderError(self._message(resp))
        return resp.json()["order"]
