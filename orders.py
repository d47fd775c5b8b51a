"""
Order lifecycle: create, list and cancel orders.

The only status transition the service performs is cancel. "Cancelled" and
"Shipped" are terminal for cancellation; any other status value (the store
does not enumerate them) can be cancelled once.
"""

import logging
from typing import Any, Dict, List, Optional

from database import create_document, get_document_by_id, get_documents, serialize_document, update_document
from errors import InvalidStateTransition, NotFound, ValidationError
from schemas import Order, OrderCreate

logger = logging.getLogger(__name__)

COLLECTION = "order"

PROCESSING = "Processing"
SHIPPED = "Shipped"
CANCELLED = "Cancelled"

# status -> reason cancel is refused
TERMINAL_STATUSES = {
    CANCELLED: "Order already cancelled",
    SHIPPED: "Cannot cancel a shipped order",
}

# tolerance when comparing a client total with the recomputed one
TOTAL_TOLERANCE = 0.01


def can_cancel(status: Optional[str]) -> bool:
    return status not in TERMINAL_STATUSES


def serialize_order(doc: Dict[str, Any]) -> Dict[str, Any]:
    order = serialize_document(doc)
    order["cancelable"] = can_cancel(order.get("orderStatus"))
    return order


def compute_total(payload: OrderCreate) -> float:
    return round(sum(item.price * item.quantity for item in payload.cart), 2)


def create_order(payload: OrderCreate) -> Dict[str, Any]:
    """Persist an order from a cart snapshot with status Processing"""
    computed = compute_total(payload)
    total = payload.total_amount
    if total is None:
        total = computed
    elif abs(total - computed) >= TOTAL_TOLERANCE:
        raise ValidationError("Total amount does not match order items")

    order = Order(
        user_id=payload.user_id,
        books=payload.cart,
        delivery=payload.delivery,
        total_amount=total,
        payment_id=payload.payment_id,
        order_status=PROCESSING,
    )
    new_id = create_document(COLLECTION, order)
    logger.info("Created order %s total=%.2f items=%d payment=%s", new_id, total, len(order.books), order.payment_id)
    return serialize_order(get_document_by_id(COLLECTION, new_id))


def list_orders(user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Orders newest first, optionally scoped to one owner"""
    filter_dict = {"userId": user_id} if user_id else None
    docs = get_documents(COLLECTION, filter_dict, sort=[("orderDate", -1)])
    return [serialize_order(d) for d in docs]


def _check_cancelable(order_id: str, doc: Optional[Dict[str, Any]]) -> str:
    if not doc:
        raise NotFound("Order not found")
    status = doc.get("orderStatus")
    if not can_cancel(status):
        logger.warning("Refused to cancel order %s in status %s", order_id, status)
        raise InvalidStateTransition(TERMINAL_STATUSES[status])
    return status


def cancel_order(order_id: str) -> Dict[str, Any]:
    status = _check_cancelable(order_id, get_document_by_id(COLLECTION, order_id))

    # the write only matches while the order is still cancelable
    still_open = {"orderStatus": {"$nin": list(TERMINAL_STATUSES)}}
    if not update_document(COLLECTION, order_id, {"orderStatus": CANCELLED}, still_open):
        _check_cancelable(order_id, get_document_by_id(COLLECTION, order_id))
        raise InvalidStateTransition("Order status changed, try again")

    doc = get_document_by_id(COLLECTION, order_id)
    if not doc:
        raise NotFound("Order not found")
    logger.info("Cancelled order %s (was %s)", order_id, status)
    return serialize_order(doc)
