"""
API dependencies

Components are built once by ``main.create_app`` and kept on ``app.state``;
these helpers hand them to route functions and can be replaced through
``app.dependency_overrides`` in tests.
"""

from fastapi import Request

from core.config import Settings
from d1_artifacts.store import ArtifactStore
from d2_uploads.intake import UploadIntake
from d7_storefront.checkout import CheckoutManager
from d7_storefront.webhooks import WebhookProcessor


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_artifact_store(request: Request) -> ArtifactStore:
    return request.app.state.artifact_store


def get_upload_intake(request: Request) -> UploadIntake:
    return request.app.state.upload_intake


def get_checkout_manager(request: Request) -> CheckoutManager:
    return request.app.state.checkout_manager


def get_webhook_processor(request: Request) -> WebhookProcessor:
    return request.app.state.webhook_processor
