from fastapi import Request

from app.services.stripe_client import StripeGateway
from app.services.storage import StorageBackend


def get_payments(request: Request) -> StripeGateway:
    return request.app.state.payments


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage
