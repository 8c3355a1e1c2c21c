"""
Provider doubles and payload builders shared by the tests
"""
import io
import json
import os
from typing import Any, Dict, List, Optional

import fitz
from PIL import Image

from core.exceptions import EmailDeliveryError, PaymentProviderError, WebhookSignatureError
from d7_storefront.stripe_client import PaymentProvider
from d9_delivery.sendgrid_client import EmailData, EmailSender, SendGridResponse

VALID_SIGNATURE = "t=1,v1=valid"
SESSION_ID = "cs_test_a1b2c3d4e5f6"
CART_ITEM_ID = "cart-1714060000000-3fa9c2"
OTHER_CART_ITEM_ID = "cart-1714060000123-b7e4d1"

INVALID_CART_ITEM_IDS = [
    "",
    "cart-",
    "cart-123",
    "cart-abc-123",
    "cart-123-XYZ",
    "cart-123-ABCDEF",
    "Cart-123-abc",
    "cart-123-abc/../../etc",
    "../cart-123-abc",
    "cart-123-abc ",
    "cart-123-abc\n",
    "poster-cart-123-abc",
    "cart-١٢٣-abc",
    "cart-１２３-abc",
]


class FakePaymentProvider(PaymentProvider):
    """In-memory payment provider recording every call"""

    def __init__(self):
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.created: List[Dict[str, Any]] = []
        self.retrieve_calls: List[str] = []
        self.construct_calls = 0
        self.fail_create: Optional[str] = None
        self.fail_retrieve: Optional[str] = None

    def create_session(self, line_items, success_url, cancel_url):
        if self.fail_create:
            raise PaymentProviderError(self.fail_create)
        self.created.append({"line_items": line_items, "success_url": success_url, "cancel_url": cancel_url})
        return {"id": SESSION_ID, "url": f"https://checkout.stripe.com/c/pay/{SESSION_ID}"}

    def construct_event(self, payload, signature):
        self.construct_calls += 1
        if signature != VALID_SIGNATURE:
            raise WebhookSignatureError("No signatures found matching the expected signature for payload")
        return json.loads(payload)

    def retrieve_session(self, session_id, expand_line_items=True):
        self.retrieve_calls.append(session_id)
        if self.fail_retrieve:
            raise PaymentProviderError(self.fail_retrieve, session_id=session_id)
        if session_id not in self.sessions:
            raise PaymentProviderError(f"No such checkout.session: '{session_id}'", session_id=session_id)
        return self.sessions[session_id]


class FakeEmailSender(EmailSender):
    """Email sender double that keeps sent messages in a list"""

    def __init__(self, fail: bool = False):
        self.sent: List[EmailData] = []
        self.fail = fail
        self.closed = False

    async def send(self, email_data: EmailData) -> SendGridResponse:
        if self.fail:
            raise EmailDeliveryError("SendGrid API error: 503", email=email_data.to_email, api_status_code=503)
        self.sent.append(email_data)
        return SendGridResponse(success=True, message_id=f"msg-{len(self.sent)}", status_code=202)

    async def aclose(self) -> None:
        self.closed = True


def make_session(
    items: List[Dict[str, Any]],
    email: Optional[str] = "runner@example.com",
    payment_status: str = "paid",
    session_id: str = SESSION_ID,
    amount_total: int = 5980,
    currency: str = "eur",
) -> Dict[str, Any]:
    """Expanded checkout session as returned by the retrieve call"""
    return {
        "id": session_id,
        "object": "checkout.session",
        "payment_status": payment_status,
        "amount_total": amount_total,
        "currency": currency,
        "customer_details": {"email": email} if email else {"email": None},
        "line_items": {
            "object": "list",
            "data": [
                {
                    "id": f"li_{index}",
                    "quantity": 1,
                    "price": {
                        "id": f"price_{index}",
                        "product": {
                            "id": f"prod_{index}",
                            "name": item.get("name"),
                            "metadata": {"cartItemId": item["cartItemId"]} if "cartItemId" in item else {},
                        },
                    },
                }
                for index, item in enumerate(items)
            ],
        },
    }


def make_event(
    event_type: str = "checkout.session.completed",
    event_id: str = "evt_test_1",
    session_id: str = SESSION_ID,
) -> bytes:
    event = {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": {"id": session_id, "object": "checkout.session"}},
    }
    return json.dumps(event).encode()


def make_pdf_bytes(padded: bool = True, width: float = 595, height: float = 842) -> bytes:
    """
    One page PDF built with PyMuPDF.

    When padded, a noise image is embedded so the file is comfortably above
    the 10 KiB minimum poster size.
    """
    doc = fitz.open()
    page = doc.new_page(width=width, height=height)
    page.insert_text((72, 72), "RunMemories test poster", fontsize=18)
    if padded:
        noise = Image.frombytes("L", (128, 128), os.urandom(128 * 128))
        buf = io.BytesIO()
        noise.save(buf, format="PNG")
        page.insert_image(fitz.Rect(72, 100, 272, 300), stream=buf.getvalue())
    data = doc.tobytes()
    doc.close()
    return data


def make_image_bytes(size=(1200, 1600), mode="RGB", fmt="PNG", color=(200, 30, 30)) -> bytes:
    image = Image.new(mode, size, color)
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()

