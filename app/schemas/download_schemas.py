from pydantic import BaseModel

from app.models.ebook import EbookFormat

class DownloadRequest(BaseModel):
    ebook_id: int
    format: EbookFormat

class DownloadResponse(BaseModel):
    url: str
    filename: str
