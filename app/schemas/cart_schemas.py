from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.schemas.ebook_schemas import EbookResponse

class CartAddRequest(BaseModel):
    ebook_id: int

class CartItemResponse(BaseModel):
    id: int
    user_id: int
    ebook_id: int
    added_at: datetime
    ebook: Optional[EbookResponse] = None
