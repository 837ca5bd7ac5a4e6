import logging
from google.oauth2 import id_token
from google.auth.transport import requests
from app.config import settings
from typing import Dict, Optional

logger = logging.getLogger(__name__)

def verify_google_token(token: str) -> Optional[Dict[str, str]]:
    """
    Verify a Google ID token and return the identity claims we keep.
    `sub` is the stable OAuth identity used as the user's open_id.
    """
    if not settings.google_client_id:
        logger.error("GOOGLE_CLIENT_ID not configured")
        return None

    try:
        id_info = id_token.verify_oauth2_token(
            token,
            requests.Request(),
            settings.google_client_id
        )
    except ValueError as e:
        logger.warning(f"Google token verification failed: {e}")
        return None

    return {
        "sub": id_info["sub"],
        "email": id_info.get("email"),
        "name": id_info.get("name", "Google User"),
    }
