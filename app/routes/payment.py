from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.dependencies.services import get_payments
from app.models.user import User
from app.schemas.payment_schemas import CheckoutResponse
from app.services.checkout_service import create_checkout
from app.services.stripe_client import StripeGateway
from app.utils.token import get_current_user

router = APIRouter()


@router.post("/create-checkout", response_model=CheckoutResponse)
def create_checkout_session(
    request: Request,
    session: Session = Depends(get_session),
    payments: StripeGateway = Depends(get_payments),
    current_user: User = Depends(get_current_user),
):
    origin = request.headers.get("origin") or settings.frontend_url
    url = create_checkout(session, payments, current_user, origin)
    return CheckoutResponse(url=url)
