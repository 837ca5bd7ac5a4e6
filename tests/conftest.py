import hashlib
import hmac
import json
import os
import time

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "proxy"
os.environ.setdefault("STORAGE_PROXY_URL", "https://storage.test")
os.environ.setdefault("STORAGE_PROXY_KEY", "storage-test-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("OWNER_OPEN_ID", "owner-open-id")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.database import build_engine, create_db_and_tables
from app.main import create_app
from app.models.ebook import Ebook
from app.models.purchase import Purchase
from app.models.user import User, UserRole
from app.services.storage import StorageBackend
from app.services.stripe_client import StripeGateway
from app.utils.token import create_access_token

WEBHOOK_SECRET = "whsec_test_secret"


class FakeStripeGateway(StripeGateway):
    """Records checkout requests and serves canned line items."""

    def __init__(self):
        super().__init__(
            api_key="sk_test_dummy",
            webhook_secret=WEBHOOK_SECRET,
            currency="eur",
            max_retries=1,
            base_delay=0,
        )
        self.created = []
        self.line_items = {}
        self.error = None

    def create_checkout_session(self, **params):
        if self.error:
            raise self.error
        self.created.append(params)
        session_id = f"cs_test_{len(self.created)}"
        return {"id": session_id, "url": f"https://checkout.stripe.test/pay/{session_id}"}

    def list_line_items(self, session_id):
        return self.line_items.get(session_id, [])


class FakeStorage(StorageBackend):
    def __init__(self):
        self.requested = []
        self.url_template = "https://files.test/signed/{key}?sig=abc"
        self.error = None

    def get_download_url(self, key, filename=None):
        if self.error:
            raise self.error
        self.requested.append((key, filename))
        return self.url_template.format(key=key)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def payments():
    return FakeStripeGateway()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(engine, payments, storage):
    app = create_app(engine=engine, payments=payments, storage=storage)
    return TestClient(app)


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role=UserRole.user, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            open_id=kwargs.pop("open_id", f"open-id-{n}"),
            name=kwargs.pop("name", f"Reader {n}"),
            email=kwargs.pop("email", f"reader{n}@example.com"),
            role=role,
            **kwargs,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_ebook(session):
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "title": f"Ebook {n}",
            "slug": f"ebook-{n}",
            "author": "Jane Doe",
            "description": "A test ebook",
            "price": Decimal("9.99"),
        }
        data.update(kwargs)
        ebook = Ebook(**data)
        session.add(ebook)
        session.commit()
        session.refresh(ebook)
        return ebook

    return _make


@pytest.fixture
def make_purchase(session):
    def _make(user, ebook, amount="9.99", checkout_id="cs_seed", **kwargs):
        purchase = Purchase(
            user_id=user.id,
            ebook_id=ebook.id,
            amount=Decimal(amount),
            stripe_checkout_session_id=checkout_id,
            **kwargs,
        )
        session.add(purchase)
        session.commit()
        session.refresh(purchase)
        return purchase

    return _make


def auth_headers(user):
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def webhook_body(event: dict) -> bytes:
    return json.dumps(event).encode("utf-8")
