"""
Test configuration and fixtures.
"""

import os
import warnings

# Keep the suite independent of any local SMTP/OpenAI configuration
for _var in (
    "SMTP_HOST",
    "SMTP_USER",
    "SMTP_PASS",
    "NODEMAILER_SENDER_EMAIL",
    "EMAIL_SIMULATE",
):
    os.environ.pop(_var, None)
os.environ["ENVIRONMENT"] = "development"
os.environ["LLM_PROVIDER"] = "fake"
os.environ["CONTACT_RECIPIENT_EMAIL"] = "owner@example.com"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from portfolio_api.core.config import settings  # noqa: E402
from portfolio_api.main import app  # noqa: E402
from portfolio_api.services.email_service import (  # noqa: E402
    ConfiguredTransport,
    EmailService,
)

warnings.filterwarnings("ignore", category=DeprecationWarning, module="pydantic.*")
warnings.filterwarnings(
    "ignore", category=PendingDeprecationWarning, module="starlette.*"
)


@pytest.fixture(scope="function")
def client():
    """Create test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def valid_submission():
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "message": "Hello, I would like to get in touch regarding a project.",
    }


@pytest.fixture
def smtp_transport():
    """A complete SMTP configuration pointing at a fake host."""
    return ConfiguredTransport(
        host="smtp.mailhost.example",
        port=587,
        username="mailer",
        password="s3cret-pass",
        sender_email="noreply@portfolio.example",
        sender_name="Portfolio Contact",
    )


@pytest.fixture
def configured_email_service(smtp_transport):
    return EmailService(smtp_transport)
