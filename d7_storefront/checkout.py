"""
D7 Storefront Checkout Flow

Validates cart payloads, creates hosted Stripe checkout sessions and checks
whether a session has been paid.
"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import PaymentRequiredError, ValidationError

from .schemas import CheckoutSessionRequest
from .stripe_client import PaymentProvider

logger = logging.getLogger(__name__)

SUCCESS_PATH = "/commande/succes"
CANCEL_PATH = "/checkout"
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"

INVALID_LINE_ITEMS_MESSAGE = "Invalid structure or missing cartItemId/quantity in line items."


def _format_validation_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


class CheckoutManager:
    """Creates hosted checkout sessions from validated cart payloads"""

    def __init__(self, payment_provider: PaymentProvider, frontend_url: str):
        self.payment_provider = payment_provider
        self.frontend_url = frontend_url.rstrip("/")

    @property
    def success_url(self) -> str:
        # Stripe substitutes the placeholder so the success page can verify the session
        return f"{self.frontend_url}{SUCCESS_PATH}?session_id={SESSION_ID_PLACEHOLDER}"

    @property
    def cancel_url(self) -> str:
        return f"{self.frontend_url}{CANCEL_PATH}"

    def validate_request(self, payload: Any) -> CheckoutSessionRequest:
        """Validate a raw request body, raising a 400 error with details on failure"""
        if not isinstance(payload, dict) or not isinstance(payload.get("line_items"), list):
            logger.error("Checkout payload has no line_items list")
            raise ValidationError("Invalid data format.", field="line_items")

        try:
            return CheckoutSessionRequest.model_validate(payload)
        except PydanticValidationError as e:
            errors = _format_validation_errors(e)
            logger.error(f"Invalid checkout line items: {errors}")
            raise ValidationError(INVALID_LINE_ITEMS_MESSAGE, field="line_items", errors=errors)

    def create_checkout_session(self, payload: Any) -> Dict[str, Any]:
        """Validate the cart and create a hosted session; returns {url, session_id}"""
        request = self.validate_request(payload)

        logger.info(f"Creating checkout session for {len(request.line_items)} line item(s)")
        session = self.payment_provider.create_session(
            line_items=request.to_stripe_line_items(),
            success_url=self.success_url,
            cancel_url=self.cancel_url,
        )

        return {"url": session.get("url"), "session_id": session.get("id")}

    def verify_payment(self, session_id: str) -> Dict[str, Any]:
        """Return the expanded session if it is paid, else raise PaymentRequiredError"""
        session = self.payment_provider.retrieve_session(session_id, expand_line_items=True)
        payment_status = session.get("payment_status")

        if payment_status != "paid":
            logger.info(f"Payment not confirmed for session {session_id}: {payment_status}")
            raise PaymentRequiredError(session_id, payment_status)

        logger.info(f"Payment verified for session {session_id}")
        return session
