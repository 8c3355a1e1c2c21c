"""
Shared fixtures for the RunMemories test suite

Every test gets its own storage directory and provider doubles, so nothing
touches Stripe, SendGrid or the real ``pdfs/`` folder.
"""
import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app
from tests.doubles import FakeEmailSender, FakePaymentProvider, make_pdf_bytes


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        environment="test",
        storage_dir=tmp_path / "pdfs",
        frontend_url="http://localhost:5173",
        backend_url="http://localhost:3001",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret="whsec_test_secret",
        sendgrid_api_key="SG.test-key",
        log_format="text",
    )


@pytest.fixture
def payment_provider():
    return FakePaymentProvider()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def app(settings, payment_provider, email_sender):
    return create_app(settings, payment_provider=payment_provider, email_sender=email_sender)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def store(app):
    return app.state.artifact_store


@pytest.fixture
def pdf_bytes():
    return make_pdf_bytes()
