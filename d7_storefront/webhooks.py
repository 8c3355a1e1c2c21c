"""
D7 Storefront Webhooks

Stripe webhook processor: signature verification, event filtering and
idempotency. Only completed checkout sessions trigger fulfillment; once a
signature has verified, fulfillment problems are recorded in the result and
never raised, so the provider is always acknowledged.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Set, Union

from starlette.concurrency import run_in_threadpool

from .stripe_client import PaymentProvider

if TYPE_CHECKING:
    from .webhook_handlers import CheckoutSessionHandler

logger = logging.getLogger(__name__)


class WebhookEventType(Enum):
    """Stripe webhook event types we handle"""

    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class WebhookStatus(Enum):
    """Webhook processing status"""

    COMPLETED = "completed"
    FAILED = "failed"
    IGNORED = "ignored"


class ProcessedEventLog:
    """
    Durable set of webhook event ids that have already been dispatched.

    One id per line in a text file; the file is read once and appended to
    afterwards. The in-memory set is only changed from the event loop thread,
    file reads and appends run in the threadpool. Every id ever processed is
    kept, in memory and on disk.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._event_ids: Optional[Set[str]] = None

    def _read(self) -> Set[str]:
        if not self.path.exists():
            return set()
        with self.path.open("r", encoding="utf-8") as f:
            return {line.strip() for line in f if line.strip()}

    def _append(self, event_id: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"{event_id}\n")
            f.flush()
            os.fsync(f.fileno())

    def _loaded(self) -> Set[str]:
        if self._event_ids is None:
            self._event_ids = self._read()
        return self._event_ids

    async def load(self) -> None:
        """Read the log file once without blocking the event loop"""
        if self._event_ids is None:
            event_ids = await run_in_threadpool(self._read)
            # Another request may have finished loading while this one waited
            if self._event_ids is None:
                self._event_ids = event_ids
                logger.debug(f"Loaded {len(event_ids)} processed event id(s) from {self.path}")

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._loaded()

    def __len__(self) -> int:
        return len(self._loaded())

    async def add(self, event_id: str) -> bool:
        """Record an event id; returns False if it was already recorded"""
        await self.load()
        event_ids = self._loaded()
        if event_id in event_ids:
            return False
        event_ids.add(event_id)
        await run_in_threadpool(self._append, event_id)
        return True


class WebhookProcessor:
    """Main webhook processor for Stripe events"""

    def __init__(
        self,
        payment_provider: PaymentProvider,
        session_handler: "CheckoutSessionHandler",
        event_log: Optional[ProcessedEventLog] = None,
        enable_idempotency: bool = True,
    ):
        self.payment_provider = payment_provider
        self.session_handler = session_handler
        self.enable_idempotency = enable_idempotency and event_log is not None
        self.event_log = event_log

        logger.info(
            f"Initialized webhook processor with idempotency={'enabled' if self.enable_idempotency else 'disabled'}"
        )

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify the signature and return the event; raises WebhookSignatureError"""
        return self.payment_provider.construct_event(payload, signature)

    def is_duplicate_event(self, event_id: Optional[str]) -> bool:
        """Check if event has already been processed"""
        if not self.enable_idempotency or not event_id:
            return False

        if event_id in self.event_log:
            logger.info(f"Duplicate event detected: {event_id}")
            return True

        return False

    async def mark_event_processed(self, event_id: Optional[str]) -> None:
        if self.enable_idempotency and event_id:
            await self.event_log.add(event_id)
            logger.debug(f"Marked event as processed: {event_id}")

    async def process_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and dispatch one webhook delivery.

        Raises WebhookSignatureError when the payload cannot be authenticated.
        Anything that goes wrong afterwards is logged and reported in the
        returned dict only.
        """
        event = self.construct_event(payload, signature)

        event_id = event.get("id")
        event_type = event.get("type")
        logger.info(f"Received webhook event {event_id} of type {event_type}")

        if event_type != WebhookEventType.CHECKOUT_SESSION_COMPLETED.value:
            logger.info(f"Unhandled event type: {event_type}")
            return {
                "success": True,
                "event_id": event_id,
                "event_type": event_type,
                "status": WebhookStatus.IGNORED.value,
                "reason": f"Unhandled event type: {event_type}",
            }

        if self.enable_idempotency:
            await self.event_log.load()

        if self.is_duplicate_event(event_id):
            return {
                "success": True,
                "event_id": event_id,
                "event_type": event_type,
                "status": WebhookStatus.IGNORED.value,
                "reason": "Duplicate event",
            }

        # Recorded before dispatch: a crash mid-fulfillment loses the email rather than sending it twice
        await self.mark_event_processed(event_id)

        try:
            result = await self.session_handler.handle_session_completed(event.get("data", {}), event_id)
        except Exception as e:
            logger.exception(f"Error processing event {event_id} of type {event_type}: {e}")
            result = {"success": False, "status": WebhookStatus.FAILED.value, "error": str(e)}

        return {"event_id": event_id, "event_type": event_type, **result}

    def get_status(self) -> Dict[str, Any]:
        """Get webhook processor status"""
        return {
            "idempotency_enabled": self.enable_idempotency,
            "processed_events_count": len(self.event_log) if self.enable_idempotency else 0,
            "supported_events": [event.value for event in WebhookEventType],
        }
