from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.cart_schemas import CartAddRequest, CartItemResponse
from app.schemas.user_schemas import SuccessResponse
from app.services import cart_service
from app.services.catalog_service import ebook_response
from app.utils.token import get_current_user


router = APIRouter()


# View Cart
@router.get("", response_model=List[CartItemResponse])
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return [
        CartItemResponse(
            id=item.id,
            user_id=item.user_id,
            ebook_id=item.ebook_id,
            added_at=item.added_at,
            ebook=ebook_response(ebook),
        )
        for item, ebook in cart_service.get_cart_items(session, current_user.id)
    ]


# Add to Cart
@router.post("/add", response_model=SuccessResponse)
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart_service.add_to_cart(session, current_user.id, data.ebook_id)
    return SuccessResponse()


# Remove from Cart
@router.delete("/remove/{ebook_id}", response_model=SuccessResponse)
def remove_item(
    ebook_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart_service.remove_from_cart(session, current_user.id, ebook_id)
    return SuccessResponse()


# Clear Cart
@router.delete("/clear", response_model=SuccessResponse)
def clear_cart_endpoint(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart_service.clear_cart(session, current_user.id)
    return SuccessResponse()
