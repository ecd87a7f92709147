"""
Response interpretation for webhook outcomes.

Webhook bodies arrive in several ad-hoc shapes. Each is matched by an
explicit, ordered recognizer and mapped to a ResponseShape, then lifted
into FileArtifact / EmailArtifact values. Interpretation is pure: the
same outcome always yields equal artifacts.
"""

import base64
import logging
import mimetypes
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from proposal_relay.core.errors import InterpretationError, WebhookHttpError, WebhookNetworkError
from proposal_relay.models import (
    EmailArtifact,
    EmailInterpretation,
    FileArtifact,
    OutcomeKind,
    ProposalInterpretation,
    ProposalRecord,
    ResponseShape,
    WebhookErrorDetail,
    WebhookOutcome,
)
from proposal_relay.services.email_extraction import (
    build_default_email,
    default_recipient,
    default_sender,
    default_subject,
    extract_email_from_text,
    render_preview_html,
)

logger = logging.getLogger(__name__)

DEFAULT_PDF_NAME = "proposal.pdf"
PDF_MIME = "application/pdf"

CONTENT_DISPOSITION_PATTERNS = [
    re.compile(r"filename\*=(?:UTF-8'')?\"?([^\";]+)\"?", re.IGNORECASE),
    re.compile(r"filename=\"([^\"]+)\"", re.IGNORECASE),
    re.compile(r"filename=([^;\s]+)", re.IGNORECASE),
]

ACTIVATION_MESSAGE = (
    "The proposal workflow is not active. It needs activation in the "
    "automation service before proposals can be generated."
)


# ===========================================
# Webhook Errors
# ===========================================

def _error_for(outcome: WebhookOutcome) -> Optional[Exception]:
    """Typed error for a failed outcome (None for success)."""
    if outcome.kind == OutcomeKind.UNCONFIGURED:
        return WebhookNetworkError(outcome.endpoint.value, f"{outcome.endpoint.value} webhook URL is not configured")
    if outcome.kind == OutcomeKind.NETWORK_FAILURE:
        return WebhookNetworkError(outcome.endpoint.value, outcome.error or "Webhook request failed")
    if outcome.kind == OutcomeKind.HTTP_ERROR:
        return _http_error(outcome)
    return None


def _http_error(outcome: WebhookOutcome) -> WebhookHttpError:
    body_text = outcome.text
    message = f"Webhook returned HTTP {outcome.status_code}"

    if outcome.status_code == 404:
        try:
            data = outcome.json_body()
        except ValueError:
            data = None
        if isinstance(data, dict) and "webhook" in str(data.get("message", "")).lower():
            return WebhookHttpError(
                outcome.endpoint.value,
                404,
                ACTIVATION_MESSAGE,
                body=body_text,
                needs_activation=True
            )

    return WebhookHttpError(outcome.endpoint.value, outcome.status_code or 0, message, body=body_text)


def describe_failure(outcome: WebhookOutcome) -> Optional[WebhookErrorDetail]:
    """
    Turn a failed outcome into the error detail reported to the caller.

    Returns:
        WebhookErrorDetail, or None if the outcome succeeded
    """
    error = _error_for(outcome)
    if error is None:
        return None

    details: Any = None
    status_code = None
    needs_activation = False
    if isinstance(error, WebhookHttpError):
        status_code = error.status
        needs_activation = error.needs_activation
        try:
            details = outcome.json_body()
        except ValueError:
            details = error.body[:1000] if error.body else None

    return WebhookErrorDetail(
        endpoint=outcome.endpoint,
        kind=outcome.kind,
        status_code=status_code,
        message=str(error),
        details=details,
        needs_activation=needs_activation,
    )


# ===========================================
# Proposal Webhook
# ===========================================

def filename_from_disposition(disposition: Optional[str]) -> str:
    """Suggested filename from a Content-Disposition header, always ending in .pdf."""
    name = None
    if disposition:
        for pattern in CONTENT_DISPOSITION_PATTERNS:
            match = pattern.search(disposition)
            if match and match.group(1).strip():
                name = match.group(1).strip()
                break

    name = name or DEFAULT_PDF_NAME
    if not name.lower().endswith(".pdf"):
        name = f"{name.rsplit('.', 1)[0] if '.' in name else name}.pdf"
    return name


def pdf_artifact(content: bytes, disposition: Optional[str]) -> FileArtifact:
    file_name = filename_from_disposition(disposition)
    encoded = base64.b64encode(content).decode("ascii")
    return FileArtifact(
        file_name=file_name,
        file_extension="pdf",
        mime_type=PDF_MIME,
        file_size=len(content),
        file_url=f"data:{PDF_MIME};base64,{encoded}",
    )


def file_artifact_from_json(file_data: Dict[str, Any]) -> FileArtifact:
    """Lift a fileData object, deriving any missing descriptive fields."""
    file_name = str(file_data.get("fileName") or DEFAULT_PDF_NAME)
    extension = str(file_data.get("fileExtension") or "").lstrip(".")
    if not extension and "." in file_name:
        extension = file_name.rsplit(".", 1)[1]
    mime_type = file_data.get("mimeType") or mimetypes.guess_type(file_name)[0] or "application/octet-stream"
    content = file_data.get("fileContent")

    size = file_data.get("fileSize")
    if not isinstance(size, int) or size < 0:
        size = len(content) if isinstance(content, str) else 0

    url = file_data.get("fileUrl") or file_data.get("url") or ""
    if not url and isinstance(content, str) and content:
        url = f"data:{mime_type};base64,{content}"

    return FileArtifact(
        file_name=file_name,
        file_extension=extension.lower(),
        mime_type=mime_type,
        file_size=size,
        file_url=url,
        file_content=content if isinstance(content, str) else None,
    )


def classify_proposal_response(outcome: WebhookOutcome) -> ResponseShape:
    content_type = outcome.content_type
    if PDF_MIME in content_type:
        return ResponseShape.PDF_BODY
    if "application/json" in content_type:
        try:
            data = outcome.json_body()
        except ValueError as e:
            raise InterpretationError(f"Unreadable JSON from proposal webhook: {e}") from e
        if isinstance(data, dict) and isinstance(data.get("fileData"), dict):
            return ResponseShape.FILE_DATA_JSON
    return ResponseShape.UNRECOGNIZED


def interpret_proposal(outcome: WebhookOutcome) -> ProposalInterpretation:
    """
    Interpret the proposal webhook outcome.

    Args:
        outcome: Dispatcher result for the proposal endpoint

    Returns:
        ProposalInterpretation; succeeded only for a 2xx with readable content
    """
    if not outcome.ok:
        return ProposalInterpretation(succeeded=False, error=describe_failure(outcome))

    try:
        shape = classify_proposal_response(outcome)
    except InterpretationError as e:
        logger.error(str(e))
        return ProposalInterpretation(
            succeeded=False,
            error=WebhookErrorDetail(
                endpoint=outcome.endpoint,
                kind=outcome.kind,
                status_code=outcome.status_code,
                message=str(e),
                details=outcome.text[:1000] or None,
            ),
        )

    if shape == ResponseShape.PDF_BODY:
        disposition = outcome.headers.get("content-disposition")
        artifact = pdf_artifact(outcome.body, disposition)
        logger.info(f"Proposal PDF received: {artifact.file_name} ({artifact.file_size} bytes)")
        return ProposalInterpretation(
            succeeded=True,
            file_artifact=artifact,
            pdf_bytes=outcome.body,
            content_disposition=f'attachment; filename="{artifact.file_name}"',
        )

    if shape == ResponseShape.FILE_DATA_JSON:
        try:
            artifact = file_artifact_from_json(outcome.json_body()["fileData"])
        except ValueError as e:
            logger.warning(f"Ignoring malformed fileData from proposal webhook: {e}")
            return ProposalInterpretation(succeeded=True)
        return ProposalInterpretation(succeeded=True, file_artifact=artifact)

    logger.info(f"Proposal webhook returned no file (content type: {outcome.content_type or 'none'})")
    return ProposalInterpretation(succeeded=True)


# ===========================================
# Email Webhook
# ===========================================

def _first_element(payload: Any) -> Optional[Dict[str, Any]]:
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return payload[0]
    return None


def _is_array_output_text(payload: Any) -> bool:
    first = _first_element(payload)
    return first is not None and isinstance(first.get("output"), str)


def _is_array_json_fields(payload: Any) -> bool:
    first = _first_element(payload)
    if first is None or not isinstance(first.get("json"), dict):
        return False
    fields = first["json"]
    return "subject" in fields or "body" in fields


def _is_email_data_wrapper(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("emailData"), dict)


def _is_email_wrapper(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("email"), dict)


def _is_direct_fields(payload: Any) -> bool:
    return isinstance(payload, dict) and "subject" in payload and "body" in payload


EMAIL_SHAPE_MATCHERS: List[Tuple[ResponseShape, Callable[[Any], bool]]] = [
    (ResponseShape.ARRAY_OUTPUT_TEXT, _is_array_output_text),
    (ResponseShape.ARRAY_JSON_FIELDS, _is_array_json_fields),
    (ResponseShape.EMAIL_DATA_WRAPPER, _is_email_data_wrapper),
    (ResponseShape.EMAIL_WRAPPER, _is_email_wrapper),
    (ResponseShape.DIRECT_FIELDS, _is_direct_fields),
]


def classify_email_payload(payload: Any) -> ResponseShape:
    """First matching shape in precedence order, else UNRECOGNIZED."""
    for shape, matches in EMAIL_SHAPE_MATCHERS:
        if matches(payload):
            return shape
    return ResponseShape.UNRECOGNIZED


def email_from_fields(fields: Dict[str, Any], record: ProposalRecord) -> EmailArtifact:
    """Lift structured email fields, filling gaps from the proposal."""
    body = fields.get("body") or fields.get("text") or fields.get("message")
    if not isinstance(body, str) or not body.strip():
        raise InterpretationError("email fields have no body")

    preview = fields.get("previewHtml") or fields.get("html")
    return EmailArtifact(
        subject=str(fields.get("subject") or default_subject(record)),
        body=body,
        to=str(fields.get("to") or default_recipient(record)),
        sender=str(fields.get("from") or default_sender(record)),
        preview_html=preview if isinstance(preview, str) else render_preview_html(body),
    )


def email_from_payload(payload: Any, record: ProposalRecord) -> EmailArtifact:
    """
    Build an EmailArtifact from a parsed email webhook body.

    Never raises: unrecognized or malformed shapes fall back to the
    default template.
    """
    shape = classify_email_payload(payload)

    try:
        if shape == ResponseShape.ARRAY_OUTPUT_TEXT:
            return extract_email_from_text(payload[0]["output"], record)
        if shape == ResponseShape.ARRAY_JSON_FIELDS:
            return email_from_fields(payload[0]["json"], record)
        if shape == ResponseShape.EMAIL_DATA_WRAPPER:
            return email_from_fields(payload["emailData"], record)
        if shape == ResponseShape.EMAIL_WRAPPER:
            return email_from_fields(payload["email"], record)
        if shape == ResponseShape.DIRECT_FIELDS:
            return email_from_fields(payload, record)
    except InterpretationError as e:
        logger.warning(f"Email response ({shape.value}) unusable, using template: {e}")
        return build_default_email(record)

    logger.info("Unrecognized email response shape, using template")
    return build_default_email(record)


def interpret_email(outcome: WebhookOutcome, record: ProposalRecord) -> EmailInterpretation:
    """
    Interpret the email webhook outcome.

    The artifact is always present: extracted from the response when
    possible, otherwise synthesized from the proposal.
    """
    if not outcome.ok:
        return EmailInterpretation(
            sent=False,
            artifact=build_default_email(record),
            error=describe_failure(outcome),
        )

    try:
        payload = outcome.json_body()
    except ValueError:
        logger.warning(
            f"Email webhook body is not JSON (content type: {outcome.content_type or 'none'})"
        )
        payload = None

    return EmailInterpretation(sent=True, artifact=email_from_payload(payload, record))
