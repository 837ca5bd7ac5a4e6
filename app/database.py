from fastapi import Request
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session
from app.config import settings


def build_engine(url: str | None = None):
    """
    Build the process-wide engine. Called once at startup by create_app,
    never lazily from a request.
    """
    url = url or settings.database_url

    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800        # refresh every 30 min
    )


def create_db_and_tables(engine):
    from app.models import user, category, ebook, cart, purchase, site_config  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session
