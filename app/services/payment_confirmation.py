import logging
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.models.user import User
from app.schemas.payment_schemas import CheckoutLine
from app.services.cart_service import clear_cart
from app.services.checkout_metadata import decode_items
from app.services.checkout_service import from_minor_units
from app.services.purchase_service import create_purchase, session_already_fulfilled
from app.services.stripe_client import StripeGateway

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
TEST_EVENT_PREFIX = "evt_test_"


def charged_amounts(lines: List[CheckoutLine], line_items: List[Dict[str, Any]]) -> List[Decimal]:
    """
    Amount actually charged for each line, taken from the session's line
    items rather than the live catalog price. Items are matched on the
    ebook_id product metadata, then by position, then on the unit amount
    recorded when the session was created.
    """
    by_ebook = {}
    for item in line_items:
        if item.get("ebook_id") is not None:
            by_ebook.setdefault(item["ebook_id"], item.get("amount_total"))

    amounts = []
    for index, line in enumerate(lines):
        minor = by_ebook.get(line.ebook_id)

        if minor is None and index < len(line_items) and line_items[index].get("ebook_id") is None:
            minor = line_items[index].get("amount_total")

        if minor is None:
            minor = line.unit_amount

        if minor is None:
            raise ValueError(f"No charged amount for ebook {line.ebook_id}")

        amounts.append(from_minor_units(minor))

    return amounts


def _payment_intent_id(checkout: Dict[str, Any]):
    intent = checkout.get("payment_intent")
    if isinstance(intent, dict):
        return intent.get("id")
    return intent


def fulfill_checkout_session(
    session: Session,
    payments: StripeGateway,
    checkout: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Materialize purchases for a completed checkout session and clear the
    buyer's cart, all in one transaction keyed by the session id. A session
    that already has purchases is reported as a duplicate and left alone.
    """
    checkout_id = checkout["id"]
    metadata = checkout.get("metadata") or {}

    user_id = int(metadata["user_id"])
    lines = decode_items(metadata)
    if not lines:
        raise ValueError(f"Checkout session {checkout_id} carries no ebooks")

    if session_already_fulfilled(session, checkout_id):
        logger.info(f"Checkout session {checkout_id} already fulfilled, skipping")
        return {"status": "duplicate", "purchases": 0}

    if not session.get(User, user_id):
        raise ValueError(f"Checkout session {checkout_id} references unknown user {user_id}")

    amounts = charged_amounts(lines, payments.list_line_items(checkout_id))
    payment_intent_id = _payment_intent_id(checkout)

    try:
        for line, amount in zip(lines, amounts):
            create_purchase(
                session,
                user_id=user_id,
                ebook_id=line.ebook_id,
                amount=amount,
                stripe_checkout_session_id=checkout_id,
                stripe_payment_intent_id=payment_intent_id,
                commit=False,
            )

        clear_cart(session, user_id, commit=False)
        session.commit()

    except IntegrityError:
        session.rollback()
        # a concurrent delivery of the same event won the race
        if session_already_fulfilled(session, checkout_id):
            logger.warning(f"Concurrent fulfillment of {checkout_id} detected, skipping")
            return {"status": "duplicate", "purchases": 0}
        raise

    except Exception:
        session.rollback()
        raise

    logger.info(f"Created {len(lines)} purchases for user {user_id} from {checkout_id}")
    return {"status": "fulfilled", "purchases": len(lines)}
