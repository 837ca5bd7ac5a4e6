import logging
from typing import List, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.cart import CartItem
from app.models.ebook import Ebook

logger = logging.getLogger(__name__)


def get_cart_items(session: Session, user_id: int) -> List[Tuple[CartItem, Ebook]]:
    return session.exec(
        select(CartItem, Ebook)
        .join(Ebook, CartItem.ebook_id == Ebook.id)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.added_at)
    ).all()


def _existing_item(session: Session, user_id: int, ebook_id: int):
    return session.exec(
        select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.ebook_id == ebook_id
        )
    ).first()


def add_to_cart(session: Session, user_id: int, ebook_id: int) -> CartItem:
    """Idempotent: adding an ebook already in the cart returns the existing row."""
    if not session.get(Ebook, ebook_id):
        raise HTTPException(status_code=404, detail="Ebook not found")

    existing_item = _existing_item(session, user_id, ebook_id)
    if existing_item:
        return existing_item

    item = CartItem(user_id=user_id, ebook_id=ebook_id)
    session.add(item)
    try:
        session.commit()
    except IntegrityError:
        # lost a race with a concurrent add
        session.rollback()
        logger.info(f"Concurrent cart add for user {user_id}, ebook {ebook_id}")
        return _existing_item(session, user_id, ebook_id)

    session.refresh(item)
    return item


def remove_from_cart(session: Session, user_id: int, ebook_id: int) -> None:
    item = _existing_item(session, user_id, ebook_id)
    if item:
        session.delete(item)
        session.commit()


def clear_cart(session: Session, user_id: int, commit: bool = True) -> None:
    items = session.exec(
        select(CartItem).where(CartItem.user_id == user_id)
    ).all()

    for item in items:
        session.delete(item)

    if commit:
        session.commit()
