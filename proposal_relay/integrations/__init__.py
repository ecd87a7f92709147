"""Integrations module - External service connectors."""

from proposal_relay.integrations.backup import BackupWriter
from proposal_relay.integrations.webhooks import WebhookDispatcher

__all__ = [
    "BackupWriter",
    "WebhookDispatcher",
]
