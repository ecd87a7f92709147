"""Models package - All Pydantic models organized by domain."""

from proposal_relay.models.enums import WebhookEndpoint, OutcomeKind, ResponseShape
from proposal_relay.models.proposal import LineItem, ProposalRecord
from proposal_relay.models.artifacts import FileArtifact, EmailArtifact
from proposal_relay.models.outcomes import WebhookOutcome
from proposal_relay.models.results import (
    WebhookErrorDetail,
    LocalBackupResult,
    ProposalInterpretation,
    EmailInterpretation,
    SubmissionResult,
)

__all__ = [
    # Enums
    "WebhookEndpoint",
    "OutcomeKind",
    "ResponseShape",
    # Input models
    "LineItem",
    "ProposalRecord",
    # Artifacts
    "FileArtifact",
    "EmailArtifact",
    # Webhook outcomes
    "WebhookOutcome",
    # Result models
    "WebhookErrorDetail",
    "LocalBackupResult",
    "ProposalInterpretation",
    "EmailInterpretation",
    "SubmissionResult",
]
