"""
D7 Storefront Stripe Client

Payment provider capability and its Stripe implementation: hosted checkout
session creation, webhook signature verification and session retrieval.
The Stripe SDK is blocking; async callers run these methods in a threadpool.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import stripe

from core.exceptions import PaymentProviderError, WebhookSignatureError

logger = logging.getLogger(__name__)

# Expansion needed to read product metadata (cartItemId) from line items
LINE_ITEMS_EXPAND = ["line_items.data.price.product"]


class PaymentProvider(ABC):
    """Narrow payment capability used by checkout and webhook handling"""

    @abstractmethod
    def create_session(
        self,
        line_items: List[Dict[str, Any]],
        success_url: str,
        cancel_url: str,
    ) -> Dict[str, Any]:
        """Create a hosted payment session and return it as a dict"""

    @abstractmethod
    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify a webhook payload signature and return the event as a dict"""

    @abstractmethod
    def retrieve_session(self, session_id: str, expand_line_items: bool = True) -> Dict[str, Any]:
        """Fetch the authoritative state of a session"""


class StripeConfig:
    """Configuration for Stripe integration"""

    def __init__(
        self,
        api_key: Optional[str],
        webhook_secret: Optional[str] = None,
        payment_method_types: Optional[List[str]] = None,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.payment_method_types = payment_method_types or ["card"]
        self.mode = "payment"

    @property
    def test_mode(self) -> bool:
        return not (self.api_key or "").startswith("sk_live_")

    @classmethod
    def from_settings(cls, settings) -> "StripeConfig":
        return cls(
            api_key=settings.stripe_secret_key.get_secret_value() if settings.stripe_secret_key else None,
            webhook_secret=settings.stripe_webhook_secret.get_secret_value()
            if settings.stripe_webhook_secret
            else None,
        )


def _to_dict(obj: Any) -> Dict[str, Any]:
    """Convert a StripeObject tree into plain dicts and lists"""
    return obj.to_dict() if hasattr(obj, "to_dict") else dict(obj)


class StripeClient(PaymentProvider):
    """
    Stripe implementation of the payment provider capability

    Uses a per-instance StripeClient from the SDK so that the API key is not
    process-global state.
    """

    def __init__(self, config: StripeConfig):
        self.config = config
        self._client = stripe.StripeClient(config.api_key) if config.api_key else None

        logger.info(f"Initialized Stripe client in {'test' if config.test_mode else 'live'} mode")

    def _require_client(self) -> "stripe.StripeClient":
        if self._client is None:
            raise PaymentProviderError("Stripe secret key is not configured")
        return self._client

    def create_session(
        self,
        line_items: List[Dict[str, Any]],
        success_url: str,
        cancel_url: str,
    ) -> Dict[str, Any]:
        client = self._require_client()
        params = {
            "payment_method_types": self.config.payment_method_types,
            "line_items": line_items,
            "mode": self.config.mode,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }

        try:
            session = client.checkout.sessions.create(params=params)
        except stripe.StripeError as e:
            logger.error(f"Error creating checkout session: {e}")
            raise PaymentProviderError(
                getattr(e, "user_message", None) or str(e) or "Failed to create checkout session.",
                stripe_error_code=getattr(e, "code", None),
            )

        logger.info(f"Created checkout session: {session.id}")
        return _to_dict(session)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not signature:
            raise WebhookSignatureError("Missing Stripe-Signature header")
        if not self.config.webhook_secret:
            raise WebhookSignatureError("Webhook secret is not configured")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.config.webhook_secret)
        except ValueError as e:
            raise WebhookSignatureError(f"Invalid payload: {e}")
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(str(e))

        return _to_dict(event)

    def retrieve_session(self, session_id: str, expand_line_items: bool = True) -> Dict[str, Any]:
        client = self._require_client()
        params = {"expand": LINE_ITEMS_EXPAND} if expand_line_items else None

        try:
            session = client.checkout.sessions.retrieve(session_id, params=params)
        except stripe.StripeError as e:
            logger.error(f"Error retrieving session {session_id}: {e}")
            raise PaymentProviderError(
                str(e) or "Failed to retrieve checkout session.",
                stripe_error_code=getattr(e, "code", None),
                session_id=session_id,
            )

        return _to_dict(session)

    def get_status(self) -> Dict[str, Any]:
        """Get client status for monitoring"""
        return {
            "configured": self._client is not None,
            "test_mode": self.config.test_mode,
            "webhook_configured": bool(self.config.webhook_secret),
        }
