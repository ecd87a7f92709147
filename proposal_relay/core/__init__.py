"""Core module - Configuration, errors and rate limiting."""

from proposal_relay.core.config import get_settings, Settings, resolve_backup_dir
from proposal_relay.core.rate_limiter import SlidingWindowRateLimiter, get_rate_limiter

__all__ = [
    "get_settings",
    "Settings",
    "resolve_backup_dir",
    "SlidingWindowRateLimiter",
    "get_rate_limiter",
]
