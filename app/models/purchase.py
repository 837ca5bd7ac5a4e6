from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime
from decimal import Decimal

class Purchase(SQLModel, table=True):
    """One row per ebook per completed checkout session. Never updated."""

    __table_args__ = (
        UniqueConstraint(
            "user_id", "ebook_id", "stripe_checkout_session_id",
            name="uq_purchase_session_line",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    ebook_id: int = Field(foreign_key="ebook.id")

    stripe_checkout_session_id: Optional[str] = Field(default=None, index=True, max_length=255)
    stripe_payment_intent_id: Optional[str] = Field(default=None, max_length=255)

    # charged amount for this line, not the live catalog price
    amount: Decimal = Field(max_digits=10, decimal_places=2)

    purchased_at: datetime = Field(default_factory=datetime.utcnow)
