from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import build_engine, create_db_and_tables
from app.services.storage import StorageBackend, build_storage
from app.services.stripe_client import StripeGateway
from app.routes import (
    auth,
    cart,
    categories,
    download,
    ebooks,
    health,
    payment,
    purchases,
    site_config,
    webhooks,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables(app.state.engine)
    yield


def create_app(
    engine=None,
    payments: StripeGateway | None = None,
    storage: StorageBackend | None = None,
) -> FastAPI:
    """
    Build the application with its collaborators wired in up front. The
    database engine, Stripe gateway and storage backend are created here,
    once per process, so misconfiguration fails at startup.
    """
    app = FastAPI(title="Ebook Store API", lifespan=lifespan)

    app.state.engine = engine if engine is not None else build_engine()
    app.state.payments = payments or StripeGateway.from_settings(settings)
    app.state.storage = storage or build_storage(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(categories.router, prefix="/categories", tags=["Categories"])
    app.include_router(ebooks.router, prefix="/ebooks", tags=["Ebooks"])
    app.include_router(cart.router, prefix="/cart", tags=["Cart"])
    app.include_router(purchases.router, prefix="/purchases", tags=["Purchases"])
    app.include_router(payment.router, prefix="/payment", tags=["Payment"])
    app.include_router(download.router, prefix="/download", tags=["Download"])
    app.include_router(site_config.router, prefix="/config", tags=["Site Config"])
    app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
    app.include_router(health.router, prefix="/health", tags=["Health"])

    @app.get("/")
    def root():
        return {
            "auth_endpoints": ["/auth/google", "/auth/me", "/auth/logout"],
            "catalog_endpoints": [
                "/categories", "/ebooks", "/ebooks/featured", "/ebooks/recent",
                "/ebooks/search", "/ebooks/{ebook_id}", "/ebooks/slug/{slug}"
            ],
            "cart": ["/cart", "/cart/add", "/cart/remove/{ebook_id}", "/cart/clear"],
            "purchases": ["/purchases", "/purchases/has-purchased/{ebook_id}", "/purchases/ids"],
            "payment": ["/payment/create-checkout", "/webhooks/stripe"],
            "download": ["/download/url"],
            "config": ["/config"],
        }

    return app


app = create_app()
