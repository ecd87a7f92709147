"""Request gate - shared-secret API key with same-origin leniency."""

import hmac
import logging
from typing import Mapping, Optional
from urllib.parse import urlparse

from proposal_relay.core.config import Settings, get_settings
from proposal_relay.core.errors import AuthError, OriginError

logger = logging.getLogger(__name__)


def _origin_of(url: Optional[str]) -> Optional[str]:
    """scheme://host[:port] of a URL, or None if it has no host."""
    if not url:
        return None
    parsed = urlparse(url)
    if not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def _host_of(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return urlparse(url).netloc.lower() or None


def request_origin(headers: Mapping[str, str]) -> Optional[str]:
    """Origin header, falling back to the origin part of Referer."""
    return _origin_of(headers.get("origin")) or _origin_of(headers.get("referer"))


def is_same_origin(headers: Mapping[str, str], settings: Settings) -> bool:
    origin = request_origin(headers)
    if origin is None:
        return False

    origin_host = _host_of(origin)
    host = (headers.get("host") or "").lower()
    if host and origin_host == host:
        return True

    return bool(settings.SITE_URL) and origin_host == _host_of(settings.SITE_URL)


def verify_request(headers: Mapping[str, str], settings: Optional[Settings] = None) -> None:
    """
    Admit or reject a submission before any work is done.

    Raises:
        OriginError: cross-origin request from an origin outside ALLOWED_ORIGINS
        AuthError: cross-origin or headerless request without a valid X-API-Key
    """
    settings = settings or get_settings()

    if not settings.API_KEY:
        return

    if is_same_origin(headers, settings):
        return

    origin = request_origin(headers)
    allowed = settings.allowed_origins
    if origin and allowed and origin not in [o.lower() for o in allowed]:
        logger.warning(f"Rejected request from origin {origin}")
        raise OriginError("Origin not allowed")

    provided = headers.get("x-api-key") or ""
    if not provided or not hmac.compare_digest(provided.encode(), settings.API_KEY.encode()):
        logger.warning(f"Rejected request with {'invalid' if provided else 'missing'} API key")
        raise AuthError("Invalid or missing API key")
