from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.dependencies.admin import require_admin
from app.schemas.site_config_schemas import SiteConfigResponse, SiteConfigUpdate
from app.schemas.user_schemas import SuccessResponse
from app.services.site_config_service import get_site_config, update_site_config


router = APIRouter()


@router.get("", response_model=SiteConfigResponse)
def site_config(session: Session = Depends(get_session)):
    config = get_site_config(session)
    return SiteConfigResponse(
        site_name=config.site_name,
        site_description=config.site_description,
    )


@router.put("", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def update_config(payload: SiteConfigUpdate, session: Session = Depends(get_session)):
    update_site_config(session, payload)
    return SuccessResponse()
