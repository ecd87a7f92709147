"""Outbound calls to the proposal and email automation webhooks."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx

from proposal_relay.core.config import get_settings
from proposal_relay.models import ProposalRecord, WebhookEndpoint, WebhookOutcome

logger = logging.getLogger(__name__)


class WebhookDispatcher:
    """
    Posts a proposal to up to two configured webhooks concurrently.

    Every call resolves to a WebhookOutcome; nothing raised by the
    transport escapes dispatch().
    """

    def __init__(
        self,
        proposal_url: Optional[str] = None,
        email_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            proposal_url: Proposal webhook; defaults to PROPOSAL_WEBHOOK_URL
            email_url: Email webhook; defaults to EMAIL_WEBHOOK_URL
            timeout: Per-call timeout in seconds; defaults to WEBHOOK_TIMEOUT_SECONDS
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        settings = get_settings()
        self.proposal_url = settings.PROPOSAL_WEBHOOK_URL if proposal_url is None else proposal_url
        self.email_url = settings.EMAIL_WEBHOOK_URL if email_url is None else email_url
        self.timeout = settings.WEBHOOK_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    def build_payload(self, record: ProposalRecord, endpoint: WebhookEndpoint) -> Dict[str, Any]:
        """Record as JSON, tagged with the call purpose and server time."""
        payload = record.to_payload()
        payload["requestType"] = endpoint.value
        payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        return payload

    async def _post(
        self,
        client: httpx.AsyncClient,
        endpoint: WebhookEndpoint,
        url: str,
        payload: Dict[str, Any]
    ) -> WebhookOutcome:
        if not url:
            logger.info(f"{endpoint.value} webhook not configured - skipping")
            return WebhookOutcome.unconfigured(endpoint)

        try:
            response = await client.post(url, json=payload)
        except httpx.TimeoutException:
            logger.error(f"{endpoint.value} webhook timeout after {self.timeout}s")
            return WebhookOutcome.network_failure(
                endpoint, url, f"Timed out after {self.timeout:g} seconds"
            )
        except httpx.HTTPError as e:
            logger.error(f"{endpoint.value} webhook request failed: {e}")
            return WebhookOutcome.network_failure(endpoint, url, str(e) or type(e).__name__)

        headers = dict(response.headers.items())
        if response.is_success:
            logger.info(
                f"{endpoint.value} webhook responded {response.status_code} "
                f"({response.headers.get('content-type', 'no content type')})"
            )
            return WebhookOutcome.success(
                endpoint, url, response.status_code, response.content, headers
            )

        logger.error(
            f"{endpoint.value} webhook error: {response.status_code} - {response.text[:500]}"
        )
        return WebhookOutcome.http_error(
            endpoint, url, response.status_code, response.content, headers
        )

    async def dispatch(
        self,
        record: ProposalRecord,
        include_proposal: bool = True,
        include_email: bool = True
    ) -> Tuple[WebhookOutcome, WebhookOutcome]:
        """
        Call both webhooks and wait for both, whatever happens to either.

        Args:
            record: Validated proposal
            include_proposal: Skip the proposal webhook when False
            include_email: Skip the email webhook when False

        Returns:
            (proposal outcome, email outcome)
        """
        targets = (
            (WebhookEndpoint.PROPOSAL, self.proposal_url if include_proposal else ""),
            (WebhookEndpoint.EMAIL, self.email_url if include_email else ""),
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            results = await asyncio.gather(
                *(
                    self._post(client, endpoint, url, self.build_payload(record, endpoint))
                    for endpoint, url in targets
                ),
                return_exceptions=True
            )

        outcomes = []
        for (endpoint, url), result in zip(targets, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(f"{endpoint.value} webhook call crashed: {result}", exc_info=result)
                result = WebhookOutcome.network_failure(endpoint, url, str(result))
            outcomes.append(result)

        return outcomes[0], outcomes[1]
