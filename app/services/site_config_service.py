from datetime import datetime

from sqlmodel import Session

from app.config import settings
from app.models.site_config import SiteConfig
from app.schemas.site_config_schemas import SiteConfigUpdate


def get_site_config(session: Session) -> SiteConfig:
    config = session.get(SiteConfig, 1)

    if not config:
        config = SiteConfig(
            id=1,
            site_name=settings.default_site_name,
            site_description=settings.default_site_description,
        )
        session.add(config)
        session.commit()
        session.refresh(config)

    return config


def update_site_config(session: Session, payload: SiteConfigUpdate) -> SiteConfig:
    config = get_site_config(session)

    if payload.site_name is not None:
        config.site_name = payload.site_name

    if payload.site_description is not None:
        config.site_description = payload.site_description

    config.updated_at = datetime.utcnow()
    session.add(config)
    session.commit()
    session.refresh(config)
    return config
