from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, text
from datetime import datetime

from app.database import get_session

router = APIRouter()

@router.get("/check")
def health_check(request: Request, session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        session.exec(text("SELECT 1"))
    except Exception:
        db_status = "failed"

    payments = request.app.state.payments

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "database": db_status,
        "payments": "configured" if payments.api_key else "missing_key",
        "webhooks": "configured" if payments.webhook_secret else "missing_secret",
        "storage": type(request.app.state.storage).__name__,
        "timestamp": datetime.utcnow().isoformat()
    }
