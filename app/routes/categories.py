from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.dependencies.admin import require_admin
from app.schemas.category_schemas import CategoryCreate, CategoryResponse, CategoryUpdate
from app.schemas.user_schemas import SuccessResponse
from app.services import catalog_service

router = APIRouter()


@router.get("", response_model=List[CategoryResponse], summary="List all categories")
def list_categories(session: Session = Depends(get_session)):
    return catalog_service.list_categories(session)


@router.post("", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def create_category(payload: CategoryCreate, session: Session = Depends(get_session)):
    catalog_service.create_category(session, payload)
    return SuccessResponse()


@router.put("/{category_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
):
    catalog_service.update_category(session, category_id, payload)
    return SuccessResponse()


@router.delete("/{category_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def delete_category(category_id: int, session: Session = Depends(get_session)):
    catalog_service.delete_category(session, category_id)
    return SuccessResponse()
