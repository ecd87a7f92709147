"""Submission API Routes - Entry point for the form wizard."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response

from proposal_relay.api.security import verify_request
from proposal_relay.core.errors import ValidationError
from proposal_relay.core.rate_limiter import client_identifier, get_rate_limiter
from proposal_relay.services.submission import submission_processor
from proposal_relay.services.validator import validate_proposal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["proposals"])


def _wants_pdf(request: Request, response_format: Optional[str]) -> bool:
    if response_format:
        return response_format.lower() == "pdf"
    accept = request.headers.get("accept", "")
    return "application/pdf" in accept and "application/json" not in accept


# ===========================================
# Proposal Submission
# ===========================================

@router.post(
    "/submit-proposal",
    summary="Submit Proposal",
    responses={
        400: {"description": "Validation failed"},
        401: {"description": "Missing or invalid API key"},
        403: {"description": "Origin not allowed"},
        429: {"description": "Rate limit exceeded"},
    }
)
async def submit_proposal(
    request: Request,
    email_only: bool = Query(False, alias="emailOnly"),
    response_format: Optional[str] = Query(None, alias="format")
) -> Response:
    """
    Forward a proposal to the automation webhooks.

    Always answers 200 once the input is valid; callers branch on the
    `success` field. With `format=pdf` (or `Accept: application/pdf`)
    the generated PDF is streamed back when the webhook produced one.
    Browser clients that download the PDF directly must ask for it this
    way, then call again with `emailOnly=true` for the email preview.
    """
    get_rate_limiter().check(client_identifier(request.headers))
    verify_request(request.headers)

    try:
        raw_data: Any = await request.json()
    except ValueError:
        raise ValidationError({"body": "Request body must be valid JSON"})

    # Handle nested body structure
    if isinstance(raw_data, dict) and isinstance(raw_data.get("body"), dict):
        raw_data = raw_data["body"]

    record, errors = validate_proposal(raw_data)
    if errors:
        raise ValidationError(errors)

    output = await submission_processor.process(record, email_only=email_only)

    if output.pdf_bytes is not None and _wants_pdf(request, response_format):
        logger.info(f"Streaming proposal PDF ({len(output.pdf_bytes)} bytes)")
        return Response(
            content=output.pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": output.content_disposition or 'attachment; filename="proposal.pdf"'},
        )

    return JSONResponse(output.result.to_response())


# ===========================================
# Health
# ===========================================

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "proposal-relay"}
