"""Tests for result reconciliation precedence."""

from datetime import datetime, timezone

import pytest

from proposal_relay.models import (
    EmailInterpretation,
    FileArtifact,
    LocalBackupResult,
    OutcomeKind,
    ProposalInterpretation,
    WebhookEndpoint,
    WebhookErrorDetail,
)
from proposal_relay.services.email_extraction import build_default_email
from proposal_relay.services.reconciler import (
    MESSAGE_BACKED_UP,
    MESSAGE_PARTIAL,
    MESSAGE_SUCCESS,
    reconcile,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def file_artifact() -> FileArtifact:
    return FileArtifact(
        file_name="x.pdf",
        file_extension="pdf",
        mime_type="application/pdf",
        file_size=4,
        file_url="data:application/pdf;base64,JVBERg==",
    )


@pytest.fixture
def webhook_error() -> WebhookErrorDetail:
    return WebhookErrorDetail(
        endpoint=WebhookEndpoint.PROPOSAL,
        kind=OutcomeKind.HTTP_ERROR,
        status_code=500,
        message="Webhook returned HTTP 500",
    )


@pytest.fixture
def email(proposal_record) -> EmailInterpretation:
    return EmailInterpretation(sent=True, artifact=build_default_email(proposal_record))


BACKUP_OK = LocalBackupResult(success=True, filename="proposal_Acme_Corp_20261019.json")
BACKUP_FAILED = LocalBackupResult(success=False, error="Permission denied")


class TestPrecedence:
    """Webhook success, then backup, then partial failure."""

    @pytest.mark.parametrize("backup", [BACKUP_OK, BACKUP_FAILED, None])
    def test_proposal_success_wins(self, proposal_record, file_artifact, email, backup):
        proposal = ProposalInterpretation(succeeded=True, file_artifact=file_artifact)

        result = reconcile(proposal_record, proposal, email, backup, now=NOW)

        assert result.success is True
        assert result.message == MESSAGE_SUCCESS
        assert result.file_data == file_artifact
        assert result.email_sent is True
        assert result.webhook_error is None
        assert result.form_data is None

    def test_proposal_success_with_failed_email(self, proposal_record):
        proposal = ProposalInterpretation(succeeded=True)
        failed_email = EmailInterpretation(sent=False, artifact=build_default_email(proposal_record))

        result = reconcile(proposal_record, proposal, failed_email, BACKUP_FAILED, now=NOW)

        assert result.success is True
        assert result.email_sent is False
        assert result.email_data is not None

    def test_backup_success_is_degraded_success(self, proposal_record, webhook_error, email):
        proposal = ProposalInterpretation(succeeded=False, error=webhook_error)

        result = reconcile(proposal_record, proposal, email, BACKUP_OK, now=NOW)

        assert result.success is True
        assert result.message == MESSAGE_BACKED_UP
        assert result.webhook_error == webhook_error
        assert result.local_backup.filename == BACKUP_OK.filename
        assert result.form_data["clientCompany"] == "Acme Corp"
        assert result.error is None

    def test_both_failed(self, proposal_record, webhook_error, email):
        proposal = ProposalInterpretation(succeeded=False, error=webhook_error)

        result = reconcile(proposal_record, proposal, email, BACKUP_FAILED, now=NOW)

        assert result.success is False
        assert result.message == MESSAGE_PARTIAL
        assert result.error == "Webhook returned HTTP 500"
        assert result.local_save_error == "Permission denied"
        assert result.form_data["serviceName"] == "Predictive Maintenance Platform"

    def test_needs_activation_message(self, proposal_record, email):
        error = WebhookErrorDetail(
            endpoint=WebhookEndpoint.PROPOSAL,
            kind=OutcomeKind.HTTP_ERROR,
            status_code=404,
            message="The proposal workflow needs activation.",
            needs_activation=True,
        )
        proposal = ProposalInterpretation(succeeded=False, error=error)

        result = reconcile(proposal_record, proposal, email, BACKUP_OK, now=NOW)

        assert result.success is True
        assert result.message.startswith("The proposal workflow needs activation.")
        assert result.webhook_error.needs_activation is True


class TestResponseShape:
    """Serialized contract."""

    def test_camel_case_and_no_nulls(self, proposal_record, webhook_error, email):
        proposal = ProposalInterpretation(succeeded=False, error=webhook_error)

        body = reconcile(proposal_record, proposal, email, BACKUP_OK, now=NOW).to_response()

        assert body["success"] is True
        assert body["timestamp"] == "2026-10-19T12:00:00+00:00"
        assert body["localBackup"] == {"success": True, "filename": BACKUP_OK.filename}
        assert body["webhookError"]["statusCode"] == 500
        assert body["webhookError"]["needsActivation"] is False
        assert body["emailSent"] is True
        assert set(body["emailData"]) == {"subject", "body", "to", "from", "previewHtml"}
        assert "fileData" not in body
        assert "error" not in body
