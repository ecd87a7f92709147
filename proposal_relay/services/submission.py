"""Submission Processor - Orchestrates backup, dispatch, interpretation and reconciliation."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from proposal_relay.integrations.backup import BackupWriter
from proposal_relay.integrations.webhooks import WebhookDispatcher
from proposal_relay.models import (
    LocalBackupResult,
    ProposalRecord,
    SubmissionResult,
    WebhookEndpoint,
    WebhookOutcome,
)
from proposal_relay.services.email_extraction import build_default_email
from proposal_relay.services.interpreter import interpret_email, interpret_proposal
from proposal_relay.services.reconciler import MESSAGE_PARTIAL, reconcile

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutput:
    """What the endpoint needs to build its response."""
    result: SubmissionResult
    pdf_bytes: Optional[bytes] = None
    content_disposition: Optional[str] = None


class SubmissionProcessor:
    """
    Runs one proposal submission end to end.

    Steps:
    1. Local backup (worker thread) and webhook dispatch, concurrently
    2. Interpret each webhook outcome
    3. Reconcile into a SubmissionResult

    Never raises: unexpected errors become a soft-failure result.
    """

    def __init__(
        self,
        dispatcher: Optional[WebhookDispatcher] = None,
        backup_writer: Optional[BackupWriter] = None
    ):
        """Initialize processor with lazy-loaded collaborators."""
        self._dispatcher = dispatcher
        self._backup_writer = backup_writer

    @property
    def dispatcher(self) -> WebhookDispatcher:
        """Lazy load dispatcher."""
        if self._dispatcher is None:
            self._dispatcher = WebhookDispatcher()
        return self._dispatcher

    @property
    def backup_writer(self) -> BackupWriter:
        """Lazy load backup writer."""
        if self._backup_writer is None:
            self._backup_writer = BackupWriter()
        return self._backup_writer

    async def _backup(self, record: ProposalRecord) -> LocalBackupResult:
        try:
            return await asyncio.to_thread(self.backup_writer.save, record)
        except Exception as e:
            logger.error(f"Local backup crashed: {e}", exc_info=True)
            return LocalBackupResult(success=False, error=str(e))

    async def process(self, record: ProposalRecord, email_only: bool = False) -> SubmissionOutput:
        """
        Process a validated proposal.

        Args:
            record: Validated proposal
            email_only: Only call the email webhook and skip the backup

        Returns:
            SubmissionOutput with the result and, when the proposal webhook
            returned a PDF, its bytes for pass-through
        """
        logger.info(
            f"Processing proposal for {record.client_company} "
            f"({'email only' if email_only else 'full'})"
        )

        try:
            if email_only:
                return await self._process_email_only(record)
            return await self._process_full(record)
        except Exception as e:
            logger.error(f"Submission processing failed: {e}", exc_info=True)
            return SubmissionOutput(
                result=SubmissionResult(
                    success=False,
                    message=MESSAGE_PARTIAL,
                    email_sent=False,
                    email_data=build_default_email(record),
                    form_data=record.to_payload(),
                    timestamp=datetime.now(timezone.utc).isoformat(),
                    error=str(e) or type(e).__name__,
                )
            )

    async def _process_full(self, record: ProposalRecord) -> SubmissionOutput:
        backup, outcomes = await asyncio.gather(
            self._backup(record),
            self.dispatcher.dispatch(record),
            return_exceptions=True
        )

        if isinstance(backup, BaseException):
            if not isinstance(backup, Exception):
                raise backup
            logger.error(f"Local backup crashed: {backup}", exc_info=backup)
            backup = LocalBackupResult(success=False, error=str(backup) or type(backup).__name__)

        if isinstance(outcomes, BaseException):
            if not isinstance(outcomes, Exception):
                raise outcomes
            logger.error(f"Webhook dispatch crashed: {outcomes}", exc_info=outcomes)
            message = str(outcomes) or type(outcomes).__name__
            outcomes = (
                WebhookOutcome.network_failure(WebhookEndpoint.PROPOSAL, self.dispatcher.proposal_url, message),
                WebhookOutcome.network_failure(WebhookEndpoint.EMAIL, self.dispatcher.email_url, message),
            )

        proposal_outcome, email_outcome = outcomes

        proposal = interpret_proposal(proposal_outcome)
        email = interpret_email(email_outcome, record)
        result = reconcile(record, proposal, email, backup)

        logger.info(
            f"Submission for {record.client_company}: success={result.success}, "
            f"proposal={proposal_outcome.kind.value}, email={email_outcome.kind.value}, "
            f"backup={'ok' if backup.success else 'failed'}"
        )

        return SubmissionOutput(
            result=result,
            pdf_bytes=proposal.pdf_bytes,
            content_disposition=proposal.content_disposition,
        )

    async def _process_email_only(self, record: ProposalRecord) -> SubmissionOutput:
        _, email_outcome = await self.dispatcher.dispatch(record, include_proposal=False)
        email = interpret_email(email_outcome, record)

        return SubmissionOutput(
            result=SubmissionResult(
                success=True,
                message="Email data generated" if email.sent else "Email preview generated from template",
                email_sent=email.sent,
                email_data=email.artifact,
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
        )


# Singleton instance
submission_processor = SubmissionProcessor()
