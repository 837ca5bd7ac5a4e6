import json
import logging
from typing import Any, Dict, List, Optional

import stripe

from app.utils.retry import call_with_retry

logger = logging.getLogger(__name__)

# Errors worth another attempt; card/auth/invalid-request errors are not.
TRANSIENT_STRIPE_ERRORS = (
    stripe.APIConnectionError,
    stripe.RateLimitError,
    stripe.APIError,
)

WEBHOOK_TOLERANCE_SECONDS = 300


class StripeGateway:
    """Thin wrapper over the Stripe checkout and webhook APIs."""

    def __init__(
        self,
        api_key: Optional[str],
        webhook_secret: Optional[str],
        currency: str = "eur",
        max_retries: int = 3,
        base_delay: float = 0.5,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.max_retries = max_retries
        self.base_delay = base_delay

    @classmethod
    def from_settings(cls, settings) -> "StripeGateway":
        return cls(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            currency=settings.stripe_currency,
            max_retries=settings.external_max_retries,
            base_delay=settings.external_retry_base_delay,
        )

    def _retry(self, fn, label: str):
        return call_with_retry(
            fn,
            retry_on=TRANSIENT_STRIPE_ERRORS,
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            label=label,
        )

    def create_checkout_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        customer_email: Optional[str],
        client_reference_id: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> Dict[str, str]:
        params = {
            "mode": "payment",
            "line_items": line_items,
            "client_reference_id": client_reference_id,
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "allow_promotion_codes": True,
        }
        if customer_email:
            params["customer_email"] = customer_email

        session = self._retry(
            lambda: stripe.checkout.Session.create(api_key=self.api_key, **params),
            label="Stripe checkout session",
        )

        logger.info(f"Created Stripe checkout session {session.id}")
        return {"id": session.id, "url": session.url}

    def list_line_items(self, session_id: str) -> List[Dict[str, Any]]:
        """
        Line items of a checkout session in order, as
        {"ebook_id": int | None, "amount_total": int (minor units)}.
        """
        result = self._retry(
            lambda: stripe.checkout.Session.list_line_items(
                session_id,
                api_key=self.api_key,
                limit=100,
                expand=["data.price.product"],
            ),
            label="Stripe line items",
        )

        items = []
        for item in result.data:
            items.append({
                "ebook_id": _ebook_id_from_line_item(item),
                "amount_total": _field(item, "amount_total"),
            })
        return items

    def construct_event(self, payload: bytes, sig_header: str) -> Dict[str, Any]:
        """
        Verify the Stripe-Signature header against the raw body and return
        the decoded event. Raises stripe.SignatureVerificationError.
        """
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            body,
            sig_header,
            self.webhook_secret,
            tolerance=WEBHOOK_TOLERANCE_SECONDS,
        )
        return json.loads(body)


def _field(obj, key: str):
    # StripeObject supports item access but is not a dict
    if obj is None or isinstance(obj, str) or key not in obj:
        return None
    return obj[key]


def _ebook_id_from_line_item(item) -> Optional[int]:
    product = _field(_field(item, "price"), "product")
    raw = _field(_field(product, "metadata"), "ebook_id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None
