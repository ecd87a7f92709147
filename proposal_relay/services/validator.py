"""Schema validation for raw proposal submissions."""

import logging
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from proposal_relay.core.config import FORM_FIELD_LABELS
from proposal_relay.models import ProposalRecord

logger = logging.getLogger(__name__)

_REQUIRED_ERROR_TYPES = {"missing", "string_too_short"}


def _field_key(loc: Tuple[Any, ...]) -> str:
    """Render a pydantic error location as clientCompany or lineItems[0].quantity."""
    key = ""
    for part in loc:
        if isinstance(part, int):
            key += f"[{part}]"
        elif key:
            key += f".{part}"
        else:
            key = str(part)
    return key or "body"


def _field_message(loc: Tuple[Any, ...], error_type: str, default: str) -> str:
    names = [part for part in loc if isinstance(part, str)]
    label = FORM_FIELD_LABELS.get(names[-1], names[-1]) if names else "Field"

    if error_type in _REQUIRED_ERROR_TYPES:
        return f"{label} is required"
    if error_type == "value_error":
        # pydantic prefixes custom messages with "Value error, "
        return default.split(", ", 1)[-1]
    return f"{label}: {default}"


def validate_proposal(raw: Any) -> Tuple[Optional[ProposalRecord], Dict[str, str]]:
    """
    Validate and coerce untyped input into a ProposalRecord.

    Args:
        raw: Decoded JSON request body

    Returns:
        (record, {}) on success, (None, {field: message}) on failure.
        Never raises for bad input.
    """
    if not isinstance(raw, dict):
        return None, {"body": "Request body must be a JSON object"}

    try:
        record = ProposalRecord.model_validate(raw)
    except PydanticValidationError as e:
        errors: Dict[str, str] = {}
        for err in e.errors():
            key = _field_key(err["loc"])
            # Keep the first message per field
            errors.setdefault(key, _field_message(err["loc"], err["type"], err["msg"]))
        logger.info(f"Proposal validation failed: {sorted(errors)}")
        return None, errors

    return record, {}
