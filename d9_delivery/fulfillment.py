"""
Fulfillment Notifier

Turns a paid checkout session into one order confirmation email listing a
download link per poster, with a preview thumbnail where one was stored.
Send failures are logged and swallowed; nothing is retried.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from core.exceptions import EmailDeliveryError
from d1_artifacts.identifiers import artifact_filename, preview_filename
from d1_artifacts.store import ArtifactStore

from .email_builder import OrderConfirmation, OrderEmailItem, build_order_confirmation_email
from .sendgrid_client import EmailSender

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = "/api/download-pdf"
PREVIEWS_PATH = "/previews"


@dataclass
class PurchasedItem:
    """A paid order line read back from the payment provider"""

    cart_item_id: str
    name: str


class FulfillmentNotifier:
    """Composes and dispatches order confirmation emails"""

    def __init__(
        self,
        store: ArtifactStore,
        email_sender: Optional[EmailSender],
        backend_url: str,
        site_url: str,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        self.store = store
        self.email_sender = email_sender
        self.backend_url = backend_url.rstrip("/")
        self.site_url = site_url
        self.from_email = from_email
        self.from_name = from_name

    @property
    def email_enabled(self) -> bool:
        return self.email_sender is not None

    def download_url(self, cart_item_id: str) -> str:
        return f"{self.backend_url}{DOWNLOAD_PATH}/{cart_item_id}"

    def preview_url(self, cart_item_id: str) -> str:
        return f"{self.backend_url}{PREVIEWS_PATH}/{preview_filename(artifact_filename(cart_item_id))}"

    def build_items(self, items: List[PurchasedItem]) -> List[OrderEmailItem]:
        email_items = []
        for item in items:
            has_preview = self.store.has_preview(item.cart_item_id)
            if not has_preview:
                logger.warning(f"No preview stored for {item.cart_item_id}, sending link only")
            email_items.append(
                OrderEmailItem(
                    name=item.name,
                    cart_item_id=item.cart_item_id,
                    download_url=self.download_url(item.cart_item_id),
                    preview_url=self.preview_url(item.cart_item_id) if has_preview else None,
                )
            )
        return email_items

    async def notify(
        self,
        customer_email: str,
        items: List[PurchasedItem],
        amount_total: Optional[int],
        currency: Optional[str],
        reference: str,
        order_date: Optional[date] = None,
    ) -> bool:
        """
        Send the order confirmation for one session.

        Returns True when the email provider accepted the message, False when
        sending was skipped or failed.
        """
        if self.email_sender is None:
            logger.error(f"Email provider not configured, cannot notify {customer_email} for {reference}")
            return False

        confirmation = OrderConfirmation(
            customer_email=customer_email,
            reference=reference,
            amount_total=amount_total or 0,
            currency=currency or "",
            items=self.build_items(items),
            order_date=order_date or date.today(),
        )
        email_data = build_order_confirmation_email(
            confirmation,
            site_url=self.site_url,
            from_email=self.from_email,
            from_name=self.from_name,
        )

        try:
            response = await self.email_sender.send(email_data)
        except EmailDeliveryError as e:
            logger.error(f"Order confirmation for {reference} to {customer_email} failed: {e.message}")
            return False

        logger.info(
            f"Order confirmation for {reference} sent to {customer_email} "
            f"with {len(items)} item(s) (message_id={response.message_id})"
        )
        return True
