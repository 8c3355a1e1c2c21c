"""
D7 Storefront & Purchase Flow

Stripe hosted checkout for poster orders: cart validation, session creation,
payment verification and the webhook that triggers order fulfillment.
"""

from .checkout import CheckoutManager
from .stripe_client import PaymentProvider, StripeClient, StripeConfig
from .webhook_handlers import CheckoutSessionHandler, extract_customer_email, extract_purchased_items
from .webhooks import ProcessedEventLog, WebhookEventType, WebhookProcessor, WebhookStatus

__all__ = [
    # Stripe Integration
    "PaymentProvider",
    "StripeClient",
    "StripeConfig",
    # Checkout Flow
    "CheckoutManager",
    # Webhook Processing
    "WebhookProcessor",
    "WebhookEventType",
    "WebhookStatus",
    "ProcessedEventLog",
    "CheckoutSessionHandler",
    "extract_customer_email",
    "extract_purchased_items",
]
