"""
Main FastAPI application entry point
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.config import Settings, get_settings
from core.exceptions import RunMemoriesError, ValidationError
from core.logging import get_logger, setup_logging
from d1_artifacts.previews import PreviewGenerator
from d1_artifacts.store import ArtifactStore
from d2_uploads.intake import UploadIntake
from d7_storefront.checkout import CheckoutManager
from d7_storefront.stripe_client import PaymentProvider, StripeClient, StripeConfig
from d7_storefront.webhook_handlers import CheckoutSessionHandler
from d7_storefront.webhooks import ProcessedEventLog, WebhookProcessor
from d9_delivery.fulfillment import FulfillmentNotifier
from d9_delivery.sendgrid_client import EmailSender, SendGridClient

logger = get_logger(__name__)


def build_email_sender(settings: Settings) -> Optional[EmailSender]:
    if not settings.email_enabled:
        logger.warning("SENDGRID_API_KEY not set, order confirmation emails are disabled")
        return None
    return SendGridClient(
        api_key=settings.sendgrid_api_key.get_secret_value(),
        default_from_email=settings.from_email,
        default_from_name=settings.from_name,
        timeout=settings.request_timeout,
    )


def create_app(
    settings: Optional[Settings] = None,
    payment_provider: Optional[PaymentProvider] = None,
    email_sender: Optional[EmailSender] = None,
) -> FastAPI:
    """
    Build the application and every component it serves.

    Components live on ``app.state`` and reach route functions through
    ``api.dependencies``. Tests pass their own settings and provider doubles.
    """
    settings = settings or get_settings()

    store = ArtifactStore(settings.storage_dir)
    store.ensure_directories()
    previews = PreviewGenerator(
        placeholder_width=settings.placeholder_preview_width,
        max_width=settings.preview_max_width,
        jpeg_quality=settings.preview_jpeg_quality,
    )
    payment_provider = payment_provider or StripeClient(StripeConfig.from_settings(settings))
    if email_sender is None:
        email_sender = build_email_sender(settings)

    notifier = FulfillmentNotifier(
        store=store,
        email_sender=email_sender,
        backend_url=settings.backend_url,
        site_url=settings.frontend_url,
        from_email=settings.from_email,
        from_name=settings.from_name,
    )
    webhook_processor = WebhookProcessor(
        payment_provider=payment_provider,
        session_handler=CheckoutSessionHandler(payment_provider, notifier),
        event_log=ProcessedEventLog(settings.processed_events_path),
        enable_idempotency=settings.enable_webhook_idempotency,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting {settings.app_name} version={settings.app_version} "
            f"environment={settings.environment} storage={store.root}"
        )
        yield
        if email_sender is not None:
            await email_sender.aclose()
        logger.info(f"Shutting down {settings.app_name}")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.artifact_store = store
    app.state.preview_generator = previews
    app.state.upload_intake = UploadIntake(
        store=store,
        previews=previews,
        max_upload_bytes=settings.max_upload_bytes,
        min_pdf_bytes=settings.min_pdf_bytes,
    )
    app.state.checkout_manager = CheckoutManager(payment_provider, settings.frontend_url)
    app.state.webhook_processor = webhook_processor
    app.state.fulfillment_notifier = notifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RunMemoriesError)
    async def runmemories_error_handler(request: Request, exc: RunMemoriesError):
        """Handle custom RunMemories errors"""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(f"RunMemories error - error_code: {exc.error_code}, details: {exc.details}, path: {request.url.path}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        """Report malformed requests with the same 400 shape as other input errors"""
        errors = [
            {"field": ".".join(str(x) for x in error["loc"]), "message": error["msg"], "type": error["type"]}
            for error in exc.errors()
        ]
        logger.warning(f"Request validation failed - path: {request.url.path}, errors: {errors}")
        error = ValidationError("Invalid request data.", errors=errors)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        logger.exception(f"Unexpected error - path: {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
        )

    from api.health import router as health_router
    from d2_uploads.api import router as uploads_router
    from d7_storefront.api import router as storefront_router
    from d8_downloads.api import router as downloads_router

    app.include_router(health_router)
    app.include_router(uploads_router)
    app.include_router(storefront_router)
    app.include_router(downloads_router)

    app.mount("/previews", StaticFiles(directory=store.previews_dir), name="previews")

    return app


def main() -> None:
    settings = get_settings()
    setup_logging(settings)
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
