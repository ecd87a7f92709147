"""Result models returned to the form wizard."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from proposal_relay.models.artifacts import EmailArtifact, FileArtifact
from proposal_relay.models.enums import OutcomeKind, WebhookEndpoint

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WebhookErrorDetail(BaseModel):
    """Why a webhook call did not produce a usable result."""
    model_config = _camel

    endpoint: WebhookEndpoint
    kind: OutcomeKind
    status_code: Optional[int] = None
    message: str
    details: Optional[Any] = None
    needs_activation: bool = False


class LocalBackupResult(BaseModel):
    """Outcome of the best-effort local backup."""
    model_config = _camel

    success: bool
    filename: Optional[str] = None
    error: Optional[str] = None


class ProposalInterpretation(BaseModel):
    """Interpreted proposal webhook outcome."""
    succeeded: bool = False
    file_artifact: Optional[FileArtifact] = None
    error: Optional[WebhookErrorDetail] = None
    pdf_bytes: Optional[bytes] = Field(None, exclude=True)
    content_disposition: Optional[str] = None


class EmailInterpretation(BaseModel):
    """Interpreted email webhook outcome."""
    sent: bool = False
    artifact: Optional[EmailArtifact] = None
    error: Optional[WebhookErrorDetail] = None


class SubmissionResult(BaseModel):
    """The single response contract of the submission endpoint."""
    model_config = _camel

    success: bool = Field(..., description="Whether the submission was handled")
    message: str = Field(..., description="Human-readable outcome")
    webhook_error: Optional[WebhookErrorDetail] = Field(None, description="Proposal webhook failure")
    local_backup: Optional[LocalBackupResult] = Field(None, description="Backup outcome")
    file_data: Optional[FileArtifact] = Field(None, description="Generated document")
    email_sent: bool = Field(False, description="Whether the email webhook accepted the request")
    email_data: Optional[EmailArtifact] = Field(None, description="Email preview")
    form_data: Optional[Dict[str, Any]] = Field(None, description="Submitted proposal for regeneration")
    timestamp: str = Field(..., description="ISO-8601 server time")
    error: Optional[str] = Field(None, description="Primary error text")
    local_save_error: Optional[str] = Field(None, description="Backup error text")

    def to_response(self) -> Dict[str, Any]:
        """JSON body with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
