from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.schemas.ebook_schemas import EbookResponse


class PurchaseResponse(BaseModel):
    id: int
    user_id: int
    ebook_id: int
    stripe_checkout_session_id: Optional[str]
    stripe_payment_intent_id: Optional[str]
    amount: Decimal
    purchased_at: datetime
    ebook: Optional[EbookResponse] = None
