"""Pytest fixtures and configuration for Proposal Relay tests."""

import os
import pytest
from typing import Any, Callable, Dict, Generator, List
from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("PROPOSAL_WEBHOOK_URL", "https://hooks.example.com/proposal")
os.environ.setdefault("EMAIL_WEBHOOK_URL", "https://hooks.example.com/email")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("SITE_URL", "https://proposals.example.com")
os.environ.setdefault("ALLOWED_ORIGINS", "https://partner.example.com")
os.environ.setdefault("DEBUG", "true")

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"


# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def sample_proposal_data() -> Dict[str, Any]:
    """Complete proposal as sent by the form wizard."""
    return {
        "clientCompany": "Acme Corp",
        "clientContact": "Jane Smith",
        "clientIndustry": "Manufacturing",
        "serviceName": "Predictive Maintenance Platform",
        "solutionOverview": "Sensor analytics that flag failing equipment before it breaks.",
        "keyDeliverable": "Production-ready anomaly detection dashboard",
        "pricingDetails": "$48,000 fixed fee",
        "timeline": "12 weeks",
        "companyName": "Northwind Analytics",
        "senderName": "Sam Lee, Solutions Director",
        "contactDetails": "sam@northwind.example.com",
    }


@pytest.fixture
def sample_line_items() -> List[Dict[str, Any]]:
    """Priced line items."""
    return [
        {"name": "Discovery workshop", "description": "Two-day onsite", "quantity": 1, "unitPrice": 6000},
        {"name": "Sensor integration", "quantity": 3, "unitPrice": 4000.5},
    ]


@pytest.fixture
def proposal_record(sample_proposal_data):
    """Validated ProposalRecord built from the sample data."""
    from proposal_relay.models import ProposalRecord
    return ProposalRecord.model_validate(sample_proposal_data)


@pytest.fixture
def sample_email_text() -> str:
    """Free-text email draft as produced by the automation tool."""
    return (
        "Here is the email draft:\n"
        "\n"
        "**Subject:** Your Predictive Maintenance Proposal\n"
        "From: Sam Lee <sam@northwind.example.com>\n"
        "To: Jane Smith <jane@acme.example.com>\n"
        "\n"
        "Dear Jane,\n"
        "\n"
        "Please find attached our proposal for Acme Corp.\n"
        "\n"
        "Best regards,\n"
        "[Your Name]\n"
        "[Your Title]\n"
        "[Your Company]\n"
        "[Phone Number]\n"
    )


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """Headers for a cross-origin caller holding the API key."""
    return {"x-api-key": "test-api-key"}


# ===========================================
# Webhook Mock Fixtures
# ===========================================

@pytest.fixture
def webhook_responses() -> Dict[str, Callable[[httpx.Request], httpx.Response]]:
    """
    Responders keyed by webhook URL path.

    A responder returns an httpx.Response or raises an httpx error.
    Paths with no responder answer 404.
    """
    return {}


@pytest.fixture
def webhook_calls() -> List[httpx.Request]:
    """Requests received by the mocked webhooks."""
    return []


@pytest.fixture
def mock_transport(webhook_responses, webhook_calls) -> httpx.MockTransport:
    """httpx transport that routes webhook calls to webhook_responses."""

    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(request)
        respond = webhook_responses.get(request.url.path)
        if respond is None:
            return httpx.Response(404, json={"message": "Not found"})
        return respond(request)

    return httpx.MockTransport(handler)


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def pdf_response() -> Callable[[httpx.Request], httpx.Response]:
    """Responder returning a PDF attachment."""
    return lambda request: httpx.Response(
        200,
        content=PDF_BYTES,
        headers={
            "Content-Type": "application/pdf",
            "Content-Disposition": 'attachment; filename="acme-proposal.pdf"',
        },
    )


@pytest.fixture
def backup_dir(tmp_path) -> str:
    return str(tmp_path / "backups")


@pytest.fixture
def processor(mock_transport, backup_dir):
    """Submission processor wired to the mocked webhooks and a temp backup dir."""
    from proposal_relay.integrations.backup import BackupWriter
    from proposal_relay.integrations.webhooks import WebhookDispatcher
    from proposal_relay.services.submission import SubmissionProcessor

    return SubmissionProcessor(
        dispatcher=WebhookDispatcher(
            proposal_url="https://hooks.example.com/proposal",
            email_url="https://hooks.example.com/email",
            timeout=5.0,
            transport=mock_transport,
        ),
        backup_writer=BackupWriter(directory=backup_dir),
    )


# ===========================================
# Client Fixtures
# ===========================================

@pytest.fixture
def client(processor) -> Generator[TestClient, None, None]:
    """Test client with the webhooks mocked and backups in a temp dir."""
    from proposal_relay.main import app
    from proposal_relay.services import submission

    with patch.object(submission.submission_processor, "_dispatcher", processor.dispatcher), \
            patch.object(submission.submission_processor, "_backup_writer", processor.backup_writer):
        with TestClient(app) as test_client:
            yield test_client


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Clear rate-limit state between tests."""
    from proposal_relay.core.rate_limiter import get_rate_limiter
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()
