from pydantic import BaseModel, Field
from typing import Optional

class SiteConfigUpdate(BaseModel):
    site_name: Optional[str] = Field(None, min_length=1, max_length=255)
    site_description: Optional[str] = None

class SiteConfigResponse(BaseModel):
    site_name: str
    site_description: Optional[str] = None
