from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.models.user import UserRole


class GoogleTokenRequest(BaseModel):
    token: str

class Token(BaseModel):
    access_token: str
    token_type: str

class UserResponse(BaseModel):
    id: int
    open_id: str
    name: Optional[str]
    email: Optional[str]
    role: UserRole
    last_signed_in: datetime

    class Config:
        from_attributes = True

class SuccessResponse(BaseModel):
    success: bool = True
