"""Best-effort local backup of submitted proposals."""

import json
import logging
import os
import re
from datetime import datetime, timezone
from typing import Optional

from proposal_relay.core.config import resolve_backup_dir
from proposal_relay.core.errors import BackupWriteError
from proposal_relay.models import LocalBackupResult, ProposalRecord

logger = logging.getLogger(__name__)

# Filenames must stay under the 255-byte filesystem limit
MAX_SLUG_LENGTH = 50


def backup_slug(record: ProposalRecord) -> str:
    """Filesystem-safe slug from the client (or sender) company name."""
    source = record.client_company or record.company_name or "proposal"
    return re.sub(r"[^a-zA-Z0-9]", "_", source)[:MAX_SLUG_LENGTH]


class BackupWriter:
    """
    Writes timestamped JSON snapshots of proposals.

    Never fails the request: every error is logged and reported
    as an unsuccessful LocalBackupResult.
    """

    def __init__(self, directory: Optional[str] = None):
        """Initialize writer; the directory is resolved lazily from settings."""
        self._directory = directory

    @property
    def directory(self) -> str:
        if self._directory is None:
            self._directory = resolve_backup_dir()
        return self._directory

    def _write(self, record: ProposalRecord) -> str:
        now = datetime.now(timezone.utc)
        filename = f"proposal_{backup_slug(record)}_{now.strftime('%Y%m%d_%H%M%S_%f')}.json"

        snapshot = record.to_payload()
        snapshot["savedAt"] = now.isoformat()

        try:
            os.makedirs(self.directory, exist_ok=True)
            path = os.path.join(self.directory, filename)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            raise BackupWriteError(f"Could not write {filename}: {e}") from e

        logger.info(f"Saved local backup: {path}")
        return filename

    def save(self, record: ProposalRecord) -> LocalBackupResult:
        """
        Persist record to the backup directory.

        Args:
            record: Validated proposal

        Returns:
            LocalBackupResult with the filename, or success=False and the error
        """
        try:
            filename = self._write(record)
        except BackupWriteError as e:
            logger.error(f"Local backup failed: {e}")
            return LocalBackupResult(success=False, error=str(e))

        return LocalBackupResult(success=True, filename=filename)
