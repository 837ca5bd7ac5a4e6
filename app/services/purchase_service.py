from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from app.models.ebook import Ebook
from app.models.purchase import Purchase


def create_purchase(
    session: Session,
    *,
    user_id: int,
    ebook_id: int,
    amount: Decimal,
    stripe_checkout_session_id: Optional[str] = None,
    stripe_payment_intent_id: Optional[str] = None,
    commit: bool = True,
) -> Purchase:
    purchase = Purchase(
        user_id=user_id,
        ebook_id=ebook_id,
        amount=amount,
        stripe_checkout_session_id=stripe_checkout_session_id,
        stripe_payment_intent_id=stripe_payment_intent_id,
        purchased_at=datetime.utcnow(),
    )
    session.add(purchase)

    if commit:
        session.commit()
        session.refresh(purchase)
    return purchase


def list_user_purchases(session: Session, user_id: int) -> List[Tuple[Purchase, Optional[Ebook]]]:
    return session.exec(
        select(Purchase, Ebook)
        .join(Ebook, Purchase.ebook_id == Ebook.id, isouter=True)
        .where(Purchase.user_id == user_id)
        .order_by(Purchase.purchased_at.desc(), Purchase.id.desc())
    ).all()


def has_purchased(session: Session, user_id: int, ebook_id: int) -> bool:
    found = session.exec(
        select(Purchase.id)
        .where(Purchase.user_id == user_id, Purchase.ebook_id == ebook_id)
        .limit(1)
    ).first()
    return found is not None


def purchased_ebook_ids(session: Session, user_id: int) -> List[int]:
    return list(session.exec(
        select(Purchase.ebook_id)
        .where(Purchase.user_id == user_id)
        .distinct()
    ).all())


def session_already_fulfilled(session: Session, checkout_session_id: str) -> bool:
    found = session.exec(
        select(Purchase.id)
        .where(Purchase.stripe_checkout_session_id == checkout_session_id)
        .limit(1)
    ).first()
    return found is not None
