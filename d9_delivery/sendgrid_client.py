"""
SendGrid API Client

Email sender capability and its SendGrid v3 implementation over httpx.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

SENDGRID_BASE_URL = "https://api.sendgrid.com"
MAIL_SEND_ENDPOINT = "/v3/mail/send"


@dataclass
class SendGridResponse:
    """SendGrid API response data"""

    success: bool
    message_id: Optional[str] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None


@dataclass
class EmailData:
    """Email data structure for SendGrid"""

    to_email: str
    subject: str
    html_content: str
    from_email: Optional[str] = None
    from_name: Optional[str] = None
    text_content: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    custom_args: Dict[str, Any] = field(default_factory=dict)


class EmailSender(ABC):
    """Narrow email capability used by the fulfillment notifier"""

    @abstractmethod
    async def send(self, email_data: EmailData) -> SendGridResponse:
        """Send one email; raise EmailDeliveryError on failure"""

    async def aclose(self) -> None:
        """Release network resources"""


class SendGridClient(EmailSender):
    """
    SendGrid API client for email delivery

    One email per call, no retries; failures surface as EmailDeliveryError.
    """

    def __init__(
        self,
        api_key: str,
        default_from_email: str,
        default_from_name: Optional[str] = None,
        timeout: float = 30.0,
        base_url: str = SENDGRID_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("SendGrid API key is required")

        self.default_from_email = default_from_email
        self.default_from_name = default_from_name
        self.default_categories = ["runmemories", "transactional"]
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

        logger.info("SendGrid client initialized")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def build_payload(self, email_data: EmailData) -> Dict[str, Any]:
        """Build the v3 mail/send request body"""
        from_email = email_data.from_email or self.default_from_email
        from_name = email_data.from_name or self.default_from_name

        payload: Dict[str, Any] = {
            "personalizations": [{"to": [{"email": email_data.to_email}], "subject": email_data.subject}],
            "from": {"email": from_email, "name": from_name or from_email},
            "content": [],
        }

        if email_data.text_content:
            payload["content"].append({"type": "text/plain", "value": email_data.text_content})
        payload["content"].append({"type": "text/html", "value": email_data.html_content})

        categories = list(dict.fromkeys(email_data.categories + self.default_categories))[:10]
        if categories:
            payload["categories"] = categories

        if email_data.custom_args:
            payload["custom_args"] = {k: str(v) for k, v in email_data.custom_args.items()}

        # Download links must reach the buyer unchanged
        payload["tracking_settings"] = {
            "click_tracking": {"enable": False, "enable_text": False},
            "open_tracking": {"enable": True},
            "subscription_tracking": {"enable": False},
        }

        return payload

    async def send(self, email_data: EmailData) -> SendGridResponse:
        """Send email through SendGrid API"""
        payload = self.build_payload(email_data)

        try:
            response = await self.client.post(MAIL_SEND_ENDPOINT, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"SendGrid request failed for {email_data.to_email}: {e}")
            raise EmailDeliveryError(f"SendGrid request failed: {e}", email=email_data.to_email)

        if response.status_code >= 400:
            logger.error(f"SendGrid API error {response.status_code} for {email_data.to_email}: {response.text}")
            raise EmailDeliveryError(
                f"SendGrid API error: {response.status_code}",
                email=email_data.to_email,
                api_status_code=response.status_code,
                response_body=response.text,
            )

        message_id = response.headers.get("X-Message-Id")
        logger.info(f"Email sent successfully to {email_data.to_email} (message_id={message_id})")

        return SendGridResponse(success=True, message_id=message_id, status_code=response.status_code)
