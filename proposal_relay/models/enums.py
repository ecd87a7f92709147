"""Enumeration types for the submission pipeline."""

from enum import Enum


class WebhookEndpoint(str, Enum):
    """Which external webhook a call targets."""
    PROPOSAL = "proposal"
    EMAIL = "email"


class OutcomeKind(str, Enum):
    """Result of a single webhook call."""
    UNCONFIGURED = "unconfigured"
    NETWORK_FAILURE = "network_failure"
    HTTP_ERROR = "http_error"
    SUCCESS = "success"


class ResponseShape(str, Enum):
    """Recognized webhook response shapes, in matcher order for email bodies."""
    PDF_BODY = "pdf_body"
    FILE_DATA_JSON = "file_data_json"
    ARRAY_OUTPUT_TEXT = "array_output_text"
    ARRAY_JSON_FIELDS = "array_json_fields"
    EMAIL_DATA_WRAPPER = "email_data_wrapper"
    EMAIL_WRAPPER = "email_wrapper"
    DIRECT_FIELDS = "direct_fields"
    UNRECOGNIZED = "unrecognized"
