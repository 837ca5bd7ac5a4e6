import logging

from fastapi import HTTPException
from sqlmodel import Session

from app.models.ebook import Ebook, EbookFormat
from app.schemas.download_schemas import DownloadResponse
from app.services.purchase_service import has_purchased
from app.services.storage import StorageBackend, StorageError, resolve_file_url

logger = logging.getLogger(__name__)


def get_download_url(
    session: Session,
    storage: StorageBackend,
    *,
    user_id: int,
    ebook_id: int,
    fmt: EbookFormat,
) -> DownloadResponse:
    # entitlement first: never reveal whether the file exists
    if not has_purchased(session, user_id, ebook_id):
        raise HTTPException(403, "You must purchase this ebook before downloading")

    ebook = session.get(Ebook, ebook_id)
    if not ebook:
        raise HTTPException(404, "Ebook not found")

    reference = ebook.file_for(fmt)
    if not reference:
        raise HTTPException(404, f"{fmt.value.upper()} format not available for this ebook")

    filename = f"{ebook.slug}.{fmt.value}"

    try:
        url = resolve_file_url(storage, reference, filename)
    except StorageError:
        logger.exception(f"Could not resolve {fmt.value} for ebook {ebook_id}")
        raise HTTPException(502, "File storage unavailable")

    return DownloadResponse(url=url, filename=filename)
