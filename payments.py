"""
Payment session initiator.

Turns a cart into a Stripe Checkout session and hands back the hosted page
URL. Completion of the session is not tracked here.
"""

import logging
import math
from typing import Any, Dict, List, NamedTuple, Optional

import stripe

from config import config
from errors import EmptyCartError, PaymentProviderError
from schemas import CheckoutItem, Delivery

logger = logging.getLogger(__name__)


class CheckoutSession(NamedTuple):
    id: str
    url: str


def to_minor_units(price: float) -> int:
    """Price in cents: the float product rounded half up"""
    return int(math.floor(price * 100 + 0.5))


def build_line_items(cart: List[CheckoutItem], currency: str) -> List[Dict[str, Any]]:
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {"name": item.title},
                "unit_amount": to_minor_units(item.price),
            },
            "quantity": item.quantity,
        }
        for item in cart
    ]


def create_session(cart: Optional[List[CheckoutItem]], delivery: Optional[Delivery] = None) -> CheckoutSession:
    if not cart:
        raise EmptyCartError()
    delivery = delivery or Delivery()

    try:
        session = stripe.checkout.Session.create(
            api_key=config.STRIPE_SECRET_KEY,
            payment_method_types=["card"],
            mode="payment",
            line_items=build_line_items(cart, config.CHECKOUT_CURRENCY),
            success_url=config.CHECKOUT_SUCCESS_URL,
            cancel_url=config.CHECKOUT_CANCEL_URL,
            # only contact details, never the full cart or address
            metadata={
                "deliveryName": delivery.full_name or "",
                "deliveryPhone": delivery.phone or "",
            },
        )
    except stripe.StripeError as e:
        logger.error("Stripe session error: %s", e)
        raise PaymentProviderError(f"Failed to create Stripe session: {e}")

    logger.info("Created checkout session %s for %d line items", session.id, len(cart))
    return CheckoutSession(id=session.id, url=session.url)
