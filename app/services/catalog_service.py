from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from slugify import slugify
from sqlalchemy import or_
from sqlmodel import Session, select

from app.models.cart import CartItem
from app.models.category import Category
from app.models.ebook import Ebook
from app.models.purchase import Purchase
from app.schemas.category_schemas import CategoryCreate, CategoryUpdate
from app.schemas.ebook_schemas import EbookCreate, EbookResponse, EbookSearchParams, EbookUpdate

DEFAULT_LIST_LIMIT = 6

# columns an update may change but never clear
EBOOK_REQUIRED_FIELDS = ("title", "slug", "author", "description", "price", "is_featured")
CATEGORY_REQUIRED_FIELDS = ("name", "slug")


def ebook_response(ebook: Ebook) -> EbookResponse:
    # file references stay server-side; clients only learn which formats exist
    data = EbookResponse.model_validate(ebook)
    data.has_pdf = bool(ebook.pdf_file)
    data.has_epub = bool(ebook.epub_file)
    return data


def _reject_nulls(data: dict, fields) -> None:
    for field in fields:
        if field in data and data[field] is None:
            raise HTTPException(400, f"{field} cannot be null")


def _resolve_slug(slug: Optional[str], source: str) -> str:
    slug = (slug or "").strip() or slugify(source)
    if not slug:
        raise HTTPException(400, "Could not derive a slug, provide one explicitly")
    return slug


# ---------- CATEGORIES ----------

def list_categories(session: Session) -> List[Category]:
    return session.exec(select(Category).order_by(Category.name)).all()


def _unique_category_slug(session: Session, slug: str, exclude_id: Optional[int] = None):
    existing = session.exec(select(Category).where(Category.slug == slug)).first()
    if existing and existing.id != exclude_id:
        raise HTTPException(400, f"Category slug '{slug}' already exists")


def create_category(session: Session, payload: CategoryCreate) -> Category:
    slug = _resolve_slug(payload.slug, payload.name)
    _unique_category_slug(session, slug)

    category = Category(name=payload.name, slug=slug, description=payload.description)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def update_category(session: Session, category_id: int, payload: CategoryUpdate) -> Category:
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    data = payload.model_dump(exclude_unset=True)
    _reject_nulls(data, CATEGORY_REQUIRED_FIELDS)
    if "slug" in data:
        data["slug"] = _resolve_slug(data["slug"], "")
    if data.get("slug"):
        _unique_category_slug(session, data["slug"], exclude_id=category_id)

    for key, value in data.items():
        setattr(category, key, value)

    category.updated_at = datetime.utcnow()
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def delete_category(session: Session, category_id: int) -> None:
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    # ebooks survive with no category
    for ebook in session.exec(select(Ebook).where(Ebook.category_id == category_id)).all():
        ebook.category_id = None
        session.add(ebook)

    session.delete(category)
    session.commit()


# ---------- EBOOKS ----------

def list_ebooks(session: Session) -> List[Ebook]:
    return session.exec(select(Ebook).order_by(Ebook.created_at.desc())).all()


def featured_ebooks(session: Session, limit: int = DEFAULT_LIST_LIMIT) -> List[Ebook]:
    return session.exec(
        select(Ebook)
        .where(Ebook.is_featured == True)  # noqa: E712
        .order_by(Ebook.created_at.desc())
        .limit(limit)
    ).all()


def recent_ebooks(session: Session, limit: int = DEFAULT_LIST_LIMIT) -> List[Ebook]:
    return session.exec(
        select(Ebook).order_by(Ebook.created_at.desc()).limit(limit)
    ).all()


def search_ebooks(session: Session, params: EbookSearchParams) -> List[Ebook]:
    query = select(Ebook)

    if params.query:
        like = f"%{params.query}%"
        query = query.where(
            or_(
                Ebook.title.ilike(like),
                Ebook.author.ilike(like),
                Ebook.description.ilike(like),
            )
        )

    if params.category_id:
        query = query.where(Ebook.category_id == params.category_id)

    if params.author:
        query = query.where(Ebook.author.ilike(f"%{params.author}%"))

    if params.min_price is not None:
        query = query.where(Ebook.price >= params.min_price)

    if params.max_price is not None:
        query = query.where(Ebook.price <= params.max_price)

    return session.exec(query.order_by(Ebook.created_at.desc())).all()


def get_ebook(session: Session, ebook_id: int) -> Ebook:
    ebook = session.get(Ebook, ebook_id)
    if not ebook:
        raise HTTPException(404, "Ebook not found")
    return ebook


def get_ebook_by_slug(session: Session, slug: str) -> Ebook:
    ebook = session.exec(select(Ebook).where(Ebook.slug == slug)).first()
    if not ebook:
        raise HTTPException(404, "Ebook not found")
    return ebook


def _check_ebook_refs(session: Session, slug: Optional[str], category_id: Optional[int], exclude_id: Optional[int] = None):
    if slug:
        existing = session.exec(select(Ebook).where(Ebook.slug == slug)).first()
        if existing and existing.id != exclude_id:
            raise HTTPException(400, f"Ebook slug '{slug}' already exists")

    if category_id is not None and not session.get(Category, category_id):
        raise HTTPException(400, "Invalid category_id")


def create_ebook(session: Session, payload: EbookCreate) -> Ebook:
    data = payload.model_dump()
    data["slug"] = _resolve_slug(data.get("slug"), payload.title)

    _check_ebook_refs(session, data["slug"], data.get("category_id"))

    ebook = Ebook(**data)
    session.add(ebook)
    session.commit()
    session.refresh(ebook)
    return ebook


def update_ebook(session: Session, ebook_id: int, payload: EbookUpdate) -> Ebook:
    ebook = get_ebook(session, ebook_id)
    data = payload.model_dump(exclude_unset=True)
    _reject_nulls(data, EBOOK_REQUIRED_FIELDS)
    if "slug" in data:
        data["slug"] = _resolve_slug(data["slug"], "")

    _check_ebook_refs(session, data.get("slug"), data.get("category_id"), exclude_id=ebook_id)

    for key, value in data.items():
        setattr(ebook, key, value)

    ebook.updated_at = datetime.utcnow()
    session.add(ebook)
    session.commit()
    session.refresh(ebook)
    return ebook


def delete_ebook(session: Session, ebook_id: int) -> None:
    ebook = get_ebook(session, ebook_id)

    purchased = session.exec(
        select(Purchase.id).where(Purchase.ebook_id == ebook_id).limit(1)
    ).first()
    if purchased is not None:
        raise HTTPException(409, "Ebook has purchases and cannot be deleted")

    for item in session.exec(select(CartItem).where(CartItem.ebook_id == ebook_id)).all():
        session.delete(item)

    session.delete(ebook)
    session.commit()
