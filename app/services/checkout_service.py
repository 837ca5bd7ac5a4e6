import logging
from decimal import Decimal, ROUND_HALF_UP

import stripe
from fastapi import HTTPException
from sqlmodel import Session

from app.models.user import User
from app.schemas.payment_schemas import CheckoutLine, CheckoutMetadata
from app.services.cart_service import get_cart_items
from app.services.checkout_metadata import encode_items
from app.services.stripe_client import StripeGateway

logger = logging.getLogger(__name__)


def to_minor_units(amount) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


def create_checkout(
    session: Session,
    payments: StripeGateway,
    user: User,
    origin: str,
) -> str:
    """
    Turn the user's cart into a Stripe checkout session and return its URL.
    Nothing is written locally: the cart is only cleared once the webhook
    confirms payment, so reloading checkout just opens another session.
    """
    items = get_cart_items(session, user.id)
    if not items:
        raise HTTPException(400, "Cart is empty")

    line_items = []
    lines = []

    for _, ebook in items:
        unit_amount = to_minor_units(ebook.price)

        line_items.append({
            "price_data": {
                "currency": payments.currency,
                "product_data": {
                    "name": ebook.title or "Ebook",
                    "metadata": {"ebook_id": str(ebook.id)},
                },
                "unit_amount": unit_amount,
            },
            "quantity": 1,
        })
        lines.append(CheckoutLine(ebook_id=ebook.id, unit_amount=unit_amount))

    metadata = {
        "user_id": str(user.id),
        "customer_email": user.email or "",
        "customer_name": user.name or "",
        **encode_items(CheckoutMetadata(items=lines)),
    }

    origin = origin.rstrip("/")

    try:
        checkout = payments.create_checkout_session(
            line_items=line_items,
            customer_email=user.email,
            client_reference_id=str(user.id),
            metadata=metadata,
            success_url=f"{origin}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/cart",
        )
    except stripe.StripeError:
        logger.exception(f"Checkout session creation failed for user {user.id}")
        raise HTTPException(502, "Payment provider unavailable")

    if not checkout.get("url"):
        raise HTTPException(502, "Payment provider returned no checkout url")

    return checkout["url"]
