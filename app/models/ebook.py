from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum


class EbookFormat(str, Enum):
    pdf = "pdf"
    epub = "epub"


class Ebook(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=255)
    slug: str = Field(index=True, unique=True, max_length=255)
    author: str = Field(max_length=255)
    description: str

    price: Decimal = Field(max_digits=10, decimal_places=2)

    #category
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")

    # files: storage key or absolute URL
    cover_image: Optional[str] = Field(default=None, max_length=500)
    pdf_file: Optional[str] = Field(default=None, max_length=500)
    epub_file: Optional[str] = Field(default=None, max_length=500)

    is_featured: bool = False
    published_at: Optional[datetime] = None

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def file_for(self, fmt: EbookFormat) -> Optional[str]:
        if fmt is EbookFormat.pdf:
            return self.pdf_file
        if fmt is EbookFormat.epub:
            return self.epub_file
        raise ValueError(f"Unsupported ebook format: {fmt}")
