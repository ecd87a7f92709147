"""Webhook call outcomes captured by the dispatcher."""

import json
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from proposal_relay.models.enums import OutcomeKind, WebhookEndpoint


class WebhookOutcome(BaseModel):
    """
    Result of one webhook call.

    Built only through the class methods below so each kind carries
    exactly the fields that make sense for it.
    """
    model_config = ConfigDict(frozen=True)

    endpoint: WebhookEndpoint
    kind: OutcomeKind
    url: Optional[str] = None
    status_code: Optional[int] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    error: Optional[str] = None

    @classmethod
    def unconfigured(cls, endpoint: WebhookEndpoint) -> "WebhookOutcome":
        return cls(endpoint=endpoint, kind=OutcomeKind.UNCONFIGURED)

    @classmethod
    def network_failure(cls, endpoint: WebhookEndpoint, url: str, message: str) -> "WebhookOutcome":
        return cls(endpoint=endpoint, kind=OutcomeKind.NETWORK_FAILURE, url=url, error=message)

    @classmethod
    def http_error(
        cls,
        endpoint: WebhookEndpoint,
        url: str,
        status_code: int,
        body: bytes,
        headers: Optional[Dict[str, str]] = None
    ) -> "WebhookOutcome":
        return cls(
            endpoint=endpoint,
            kind=OutcomeKind.HTTP_ERROR,
            url=url,
            status_code=status_code,
            body=body,
            headers={k.lower(): v for k, v in (headers or {}).items()},
        )

    @classmethod
    def success(
        cls,
        endpoint: WebhookEndpoint,
        url: str,
        status_code: int,
        body: bytes,
        headers: Optional[Dict[str, str]] = None
    ) -> "WebhookOutcome":
        return cls(
            endpoint=endpoint,
            kind=OutcomeKind.SUCCESS,
            url=url,
            status_code=status_code,
            body=body,
            headers={k.lower(): v for k, v in (headers or {}).items()},
        )

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").lower()

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json_body(self) -> Any:
        """Parse the body as JSON; raises ValueError if it is not JSON."""
        return json.loads(self.text)
