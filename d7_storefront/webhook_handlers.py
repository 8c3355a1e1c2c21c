"""
D7 Storefront Webhook Handlers

Handler for completed checkout sessions: re-fetches the session from Stripe,
reads the purchased items back from product metadata and hands them to the
fulfillment notifier.
"""

import logging
from typing import Any, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from d1_artifacts.identifiers import is_valid_cart_item_id
from d9_delivery.fulfillment import FulfillmentNotifier, PurchasedItem

from .stripe_client import PaymentProvider
from .webhooks import WebhookStatus

logger = logging.getLogger(__name__)

DEFAULT_ITEM_NAME = "Personalized poster"


def extract_customer_email(session: Dict[str, Any]) -> Optional[str]:
    """Buyer email as collected by the hosted checkout page"""
    customer_details = session.get("customer_details") or {}
    return customer_details.get("email") or session.get("customer_email")


def extract_purchased_items(session: Dict[str, Any]) -> List[PurchasedItem]:
    """
    Read purchased items from an expanded session.

    Items whose product metadata has no valid cartItemId are dropped, since
    no artifact path can be derived for them.
    """
    line_items = (session.get("line_items") or {}).get("data") or []
    items = []

    for line_item in line_items:
        product = (line_item.get("price") or {}).get("product")
        if not isinstance(product, dict):
            logger.warning(f"Line item {line_item.get('id')} has no expanded product, skipping")
            continue

        cart_item_id = (product.get("metadata") or {}).get("cartItemId")
        if not is_valid_cart_item_id(cart_item_id):
            logger.warning(f"Line item {line_item.get('id')} has invalid cartItemId {cart_item_id!r}, skipping")
            continue

        items.append(PurchasedItem(cart_item_id=cart_item_id, name=product.get("name") or DEFAULT_ITEM_NAME))

    return items


class CheckoutSessionHandler:
    """Handle checkout session webhook events"""

    def __init__(self, payment_provider: PaymentProvider, notifier: FulfillmentNotifier):
        self.payment_provider = payment_provider
        self.notifier = notifier

    def _skipped(self, session_id: str, reason: str) -> Dict[str, Any]:
        logger.error(f"Cannot fulfill session {session_id}: {reason}")
        return {
            "success": False,
            "status": WebhookStatus.FAILED.value,
            "error": reason,
            "data": {"session_id": session_id},
        }

    async def handle_session_completed(self, event_data: Dict[str, Any], event_id: str) -> Dict[str, Any]:
        """Fulfill a completed checkout session"""
        session_id = (event_data.get("object") or {}).get("id")
        if not session_id:
            return self._skipped("unknown", "Event carries no session id")

        logger.info(f"Checkout session completed: {session_id} (event {event_id})")

        # The event payload is not trusted for item data; Stripe is asked again
        session = await run_in_threadpool(self.payment_provider.retrieve_session, session_id, True)

        customer_email = extract_customer_email(session)
        if not customer_email:
            return self._skipped(session_id, "Customer email missing")

        items = extract_purchased_items(session)
        if not items:
            return self._skipped(session_id, "No valid cartItemId among purchased items")

        if not self.notifier.email_enabled:
            return self._skipped(session_id, "Email provider not configured")

        sent = await self.notifier.notify(
            customer_email=customer_email,
            items=items,
            amount_total=session.get("amount_total"),
            currency=session.get("currency"),
            reference=session_id,
        )

        return {
            "success": sent,
            "status": WebhookStatus.COMPLETED.value if sent else WebhookStatus.FAILED.value,
            "data": {
                "session_id": session_id,
                "customer_email": customer_email,
                "cart_item_ids": [item.cart_item_id for item in items],
                "email_sent": sent,
            },
        }
