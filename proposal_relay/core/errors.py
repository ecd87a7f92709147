"""Exception hierarchy for the submission pipeline.

Only ValidationError, AuthError and RateLimitError reach the client as
non-200 responses. The webhook, backup and interpretation errors are
recovered inside the pipeline and folded into the SubmissionResult.
"""

from typing import Dict, Optional


class ProposalRelayError(Exception):
    """Base exception for Proposal Relay errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProposalRelayError):
    """Raised when the submitted proposal fails schema validation."""

    status_code = 400

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class AuthError(ProposalRelayError):
    """Raised when the API key is missing or wrong."""

    status_code = 401


class OriginError(AuthError):
    """Raised when a cross-origin request comes from a disallowed origin."""

    status_code = 403


class RateLimitError(ProposalRelayError):
    """Raised when a client exceeds its request window."""

    status_code = 429

    def __init__(self, message: str, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class WebhookNetworkError(ProposalRelayError):
    """Transport-level failure calling an external webhook."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(message)
        self.endpoint = endpoint


class WebhookHttpError(ProposalRelayError):
    """Non-2xx response from an external webhook."""

    def __init__(
        self,
        endpoint: str,
        status: int,
        message: str,
        body: Optional[str] = None,
        needs_activation: bool = False
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status
        self.body = body
        self.needs_activation = needs_activation


class BackupWriteError(ProposalRelayError):
    """Local backup could not be written."""


class InterpretationError(ProposalRelayError):
    """Webhook response had an unexpected or unreadable shape."""
