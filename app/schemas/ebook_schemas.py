from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal


def check_cover_url(cover_image: Optional[str]):
    # clients render covers as-is
    if cover_image and not cover_image.lower().startswith(("http://", "https://")):
        raise ValueError("cover_image must be an absolute http(s) URL")


class EbookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = None
    author: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)

    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category_id: Optional[int] = None

    cover_image: Optional[str] = None
    pdf_file: Optional[str] = None
    epub_file: Optional[str] = None

    is_featured: bool = False
    published_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_cover(self):
        check_cover_url(self.cover_image)
        return self


class EbookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = None
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None

    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category_id: Optional[int] = None

    cover_image: Optional[str] = None
    pdf_file: Optional[str] = None
    epub_file: Optional[str] = None

    is_featured: Optional[bool] = None
    published_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_cover(self):
        check_cover_url(self.cover_image)
        return self


class EbookResponse(BaseModel):
    id: int
    title: str
    slug: str
    author: str
    description: str

    price: Decimal
    category_id: Optional[int]

    cover_image: Optional[str]
    has_pdf: bool = False
    has_epub: bool = False

    is_featured: bool
    published_at: Optional[datetime]

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EbookSearchParams(BaseModel):
    query: Optional[str] = None
    category_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    author: Optional[str] = None
