from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from app.config import settings
from app.models.user import User, UserRole


def upsert_user(
    session: Session,
    *,
    open_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    login_method: Optional[str] = None,
    stripe_customer_id: Optional[str] = None,
    role: Optional[UserRole] = None,
) -> User:
    """
    Insert or update a user by OAuth identity on every login. Only fields
    that are passed overwrite stored values. The configured owner is always
    an admin.
    """
    if not open_id:
        raise ValueError("User open_id is required for upsert")

    user = session.exec(select(User).where(User.open_id == open_id)).first()
    now = datetime.utcnow()

    if not user:
        user = User(open_id=open_id, created_at=now)

    for field, value in (
        ("name", name),
        ("email", email),
        ("login_method", login_method),
        ("stripe_customer_id", stripe_customer_id),
    ):
        if value is not None:
            setattr(user, field, value)

    if role is not None:
        user.role = role
    if settings.owner_open_id and open_id == settings.owner_open_id:
        user.role = UserRole.admin

    user.last_signed_in = now
    user.updated_at = now

    session.add(user)
    session.commit()
    session.refresh(user)
    return user
