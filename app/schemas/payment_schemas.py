from pydantic import BaseModel, Field
from typing import List, Optional

# Bump when the shape of CheckoutMetadata changes; the webhook reads both.
CHECKOUT_METADATA_VERSION = 1


class CheckoutLine(BaseModel):
    ebook_id: int
    unit_amount: Optional[int] = None  # minor currency units


class CheckoutMetadata(BaseModel):
    """Structured payload round-tripped through the checkout session metadata."""
    v: int = CHECKOUT_METADATA_VERSION
    items: List[CheckoutLine] = Field(default_factory=list)


class CheckoutResponse(BaseModel):
    url: str
