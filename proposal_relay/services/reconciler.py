"""Combines webhook and backup outcomes into one SubmissionResult."""

import logging
from datetime import datetime, timezone
from typing import Optional

from proposal_relay.models import (
    EmailInterpretation,
    LocalBackupResult,
    ProposalInterpretation,
    ProposalRecord,
    SubmissionResult,
)

logger = logging.getLogger(__name__)

MESSAGE_SUCCESS = "Proposal submitted and processed successfully"
MESSAGE_BACKED_UP = (
    "The proposal service could not process your request, "
    "but your data was saved safely."
)
MESSAGE_PARTIAL = "Your proposal was received but could not be fully processed."


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def reconcile(
    record: ProposalRecord,
    proposal: ProposalInterpretation,
    email: EmailInterpretation,
    backup: Optional[LocalBackupResult],
    now: Optional[datetime] = None
) -> SubmissionResult:
    """
    Decide the overall outcome of a submission.

    Precedence:
        1. proposal webhook succeeded -> success
        2. local backup succeeded -> degraded success with the webhook error
        3. otherwise -> soft failure with both errors

    Args:
        record: The validated proposal
        proposal: Interpreted proposal webhook outcome
        email: Interpreted email webhook outcome
        backup: Local backup outcome (None if no backup was attempted)
        now: Timestamp override

    Returns:
        The normalized SubmissionResult
    """
    timestamp = _timestamp(now)

    if proposal.succeeded:
        return SubmissionResult(
            success=True,
            message=MESSAGE_SUCCESS,
            local_backup=backup,
            file_data=proposal.file_artifact,
            email_sent=email.sent,
            email_data=email.artifact,
            timestamp=timestamp,
        )

    webhook_error = proposal.error
    error_text = webhook_error.message if webhook_error else "Proposal webhook failed"
    activation_prefix = f"{webhook_error.message} " if webhook_error and webhook_error.needs_activation else ""

    if backup is not None and backup.success:
        logger.warning(f"Proposal webhook failed, data kept in local backup {backup.filename}")
        return SubmissionResult(
            success=True,
            message=f"{activation_prefix}{MESSAGE_BACKED_UP}",
            webhook_error=webhook_error,
            local_backup=backup,
            email_sent=email.sent,
            email_data=email.artifact,
            form_data=record.to_payload(),
            timestamp=timestamp,
        )

    logger.error("Proposal webhook and local backup both failed")
    return SubmissionResult(
        success=False,
        message=f"{activation_prefix}{MESSAGE_PARTIAL}",
        webhook_error=webhook_error,
        local_backup=backup,
        email_sent=email.sent,
        email_data=email.artifact,
        form_data=record.to_payload(),
        timestamp=timestamp,
        error=error_text,
        local_save_error=backup.error if backup is not None else None,
    )
