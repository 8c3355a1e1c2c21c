"""
D7 Storefront API

Checkout session creation, the Stripe webhook endpoint and payment
verification for the success page.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_checkout_manager, get_webhook_processor
from core.exceptions import ExternalAPIError, PaymentRequiredError, ValidationError

from .checkout import CheckoutManager
from .schemas import CheckoutSessionRequest, CheckoutSessionResponse, PaymentVerificationResponse, WebhookAcknowledgement
from .webhooks import WebhookProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Create a hosted checkout session",
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": CheckoutSessionRequest.model_json_schema()}},
            "required": True,
        }
    },
)
async def create_checkout_session(
    request: Request,
    manager: CheckoutManager = Depends(get_checkout_manager),
) -> CheckoutSessionResponse:
    """
    Validate the cart and return the Stripe checkout URL.

    The body is read raw so that shape errors come back as a 400 with the
    line item details instead of FastAPI's generic 422.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Invalid data format.", field="line_items")

    session = await run_in_threadpool(manager.create_checkout_session, payload)
    return CheckoutSessionResponse(url=session["url"])


@router.post(
    "/stripe-webhook",
    response_model=WebhookAcknowledgement,
    summary="Stripe webhook endpoint",
)
async def stripe_webhook(
    request: Request,
    processor: WebhookProcessor = Depends(get_webhook_processor),
) -> WebhookAcknowledgement:
    """
    Stripe webhook endpoint

    The signature is checked against the raw body. A bad signature is a 400;
    after that the event is always acknowledged so Stripe does not retry.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    result = await processor.process_webhook(payload, signature)

    if result.get("success"):
        logger.info(f"Webhook event {result.get('event_id')} {result.get('status')}")
    else:
        logger.error(f"Webhook event {result.get('event_id')} not fulfilled: {result.get('error')}")

    return WebhookAcknowledgement(received=True)


@router.get(
    "/verify-payment/{session_id}",
    response_model=PaymentVerificationResponse,
    response_model_exclude_none=True,
    summary="Check whether a checkout session has been paid",
)
async def verify_payment(
    session_id: str,
    manager: CheckoutManager = Depends(get_checkout_manager),
) -> Any:
    try:
        session: Dict[str, Any] = await run_in_threadpool(manager.verify_payment, session_id)
    except PaymentRequiredError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={
                "isPaid": False,
                "error": e.message,
                "payment_status": e.details.get("payment_status"),
            },
        )
    except ExternalAPIError as e:
        logger.error(f"Payment verification failed for {session_id}: {e.message}")
        return JSONResponse(status_code=500, content={"isPaid": False, "error": e.message})

    return PaymentVerificationResponse(isPaid=True, session=session)
