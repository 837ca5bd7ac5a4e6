from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.dependencies.services import get_storage
from app.models.user import User
from app.schemas.download_schemas import DownloadRequest, DownloadResponse
from app.services.download_service import get_download_url
from app.services.storage import StorageBackend
from app.utils.token import get_current_user

router = APIRouter()


@router.post("/url", response_model=DownloadResponse)
def download_url(
    payload: DownloadRequest,
    session: Session = Depends(get_session),
    storage: StorageBackend = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    return get_download_url(
        session,
        storage,
        user_id=current_user.id,
        ebook_id=payload.ebook_id,
        fmt=payload.format,
    )
