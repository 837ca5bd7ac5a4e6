from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.user_schemas import GoogleTokenRequest, SuccessResponse, Token, UserResponse
from app.services.user_service import upsert_user
from app.utils.google_auth import verify_google_token
from app.utils.token import create_access_token, get_optional_user


router = APIRouter()


@router.post("/google", response_model=Token)
def google_login(request: GoogleTokenRequest, session: Session = Depends(get_session)):
    google_user = verify_google_token(request.token)
    if not google_user:
        raise HTTPException(401, "Invalid Google token")

    user = upsert_user(
        session,
        open_id=google_user["sub"],
        name=google_user.get("name"),
        email=google_user.get("email"),
        login_method="google",
    )

    token = create_access_token({"sub": str(user.id)})
    return Token(access_token=token, token_type="bearer")


@router.get("/me", response_model=Optional[UserResponse])
def me(current_user: Optional[User] = Depends(get_optional_user)):
    return current_user


@router.post("/logout", response_model=SuccessResponse)
def logout():
    # tokens are stateless; the client drops its copy
    return SuccessResponse()
