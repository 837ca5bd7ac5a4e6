from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.database import get_session
from app.dependencies.admin import require_admin
from app.schemas.ebook_schemas import EbookCreate, EbookResponse, EbookSearchParams, EbookUpdate
from app.schemas.user_schemas import SuccessResponse
from app.services import catalog_service
from app.services.catalog_service import ebook_response

router = APIRouter()


@router.get("", response_model=List[EbookResponse])
def list_ebooks(session: Session = Depends(get_session)):
    return [ebook_response(e) for e in catalog_service.list_ebooks(session)]


@router.get("/featured", response_model=List[EbookResponse])
def featured_ebooks(
    limit: int = Query(catalog_service.DEFAULT_LIST_LIMIT, ge=1, le=100),
    session: Session = Depends(get_session),
):
    return [ebook_response(e) for e in catalog_service.featured_ebooks(session, limit)]


@router.get("/recent", response_model=List[EbookResponse])
def recent_ebooks(
    limit: int = Query(catalog_service.DEFAULT_LIST_LIMIT, ge=1, le=100),
    session: Session = Depends(get_session),
):
    return [ebook_response(e) for e in catalog_service.recent_ebooks(session, limit)]


# ---------- SEARCH EBOOKS ----------
@router.get("/search", response_model=List[EbookResponse], summary="Search and filter ebooks")
def search_ebooks(
    query: Optional[str] = None,
    category_id: Optional[int] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    author: Optional[str] = None,
    session: Session = Depends(get_session),
):
    params = EbookSearchParams(
        query=query,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        author=author,
    )
    return [ebook_response(e) for e in catalog_service.search_ebooks(session, params)]


@router.get("/slug/{slug}", response_model=EbookResponse)
def get_ebook_by_slug(slug: str, session: Session = Depends(get_session)):
    return ebook_response(catalog_service.get_ebook_by_slug(session, slug))


@router.get("/{ebook_id}", response_model=EbookResponse)
def get_ebook(ebook_id: int, session: Session = Depends(get_session)):
    return ebook_response(catalog_service.get_ebook(session, ebook_id))


# ---------- ADMIN ----------
@router.post("", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def create_ebook(payload: EbookCreate, session: Session = Depends(get_session)):
    catalog_service.create_ebook(session, payload)
    return SuccessResponse()


@router.put("/{ebook_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def update_ebook(
    ebook_id: int,
    payload: EbookUpdate,
    session: Session = Depends(get_session),
):
    catalog_service.update_ebook(session, ebook_id, payload)
    return SuccessResponse()


@router.delete("/{ebook_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def delete_ebook(ebook_id: int, session: Session = Depends(get_session)):
    catalog_service.delete_ebook(session, ebook_id)
    return SuccessResponse()
