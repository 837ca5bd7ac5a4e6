from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime

class CartItem(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "ebook_id", name="uq_cart_user_ebook"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    ebook_id: int = Field(foreign_key="ebook.id")
    added_at: datetime = Field(default_factory=datetime.utcnow)
