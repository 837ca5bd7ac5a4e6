from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

class SiteConfig(SQLModel, table=True):
    id: Optional[int] = Field(default=1, primary_key=True)
    site_name: str = Field(max_length=255)
    site_description: Optional[str] = None

    updated_at: datetime = Field(default_factory=datetime.utcnow)
