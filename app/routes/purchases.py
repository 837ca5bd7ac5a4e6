from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.purchase_schemas import PurchaseResponse
from app.services import purchase_service
from app.services.catalog_service import ebook_response
from app.utils.token import get_current_user

router = APIRouter()


@router.get("", response_model=List[PurchaseResponse])
def list_purchases(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return [
        PurchaseResponse(
            id=p.id,
            user_id=p.user_id,
            ebook_id=p.ebook_id,
            stripe_checkout_session_id=p.stripe_checkout_session_id,
            stripe_payment_intent_id=p.stripe_payment_intent_id,
            amount=p.amount,
            purchased_at=p.purchased_at,
            ebook=ebook_response(ebook) if ebook else None,
        )
        for p, ebook in purchase_service.list_user_purchases(session, current_user.id)
    ]


@router.get("/has-purchased/{ebook_id}", response_model=bool)
def has_purchased(
    ebook_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return purchase_service.has_purchased(session, current_user.id, ebook_id)


@router.get("/ids", response_model=List[int])
def purchased_ids(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return purchase_service.purchased_ebook_ids(session, current_user.id)
