"""
Email reconstruction from unstructured automation output.

The email webhook sometimes returns a flat text blob (an LLM draft)
instead of structured fields. The helpers here pull a subject, sender,
recipient and body out of that text, falling back to values derived
from the proposal when a pattern does not match.
"""

import html
import logging
import re
from typing import Dict, List, Optional, Pattern

from proposal_relay.models import EmailArtifact, ProposalRecord

logger = logging.getLogger(__name__)


# ===========================================
# Header Patterns (first match wins)
# ===========================================

SUBJECT_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^[ \t>#*_]*Subject(?: line)?[ \t]*[:\-][ \t]*(.+)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Subject[ \t]*:[ \t]*(.+)", re.IGNORECASE),
    re.compile(r"\bRe:[ \t]*(.+)", re.IGNORECASE),
]

FROM_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^[ \t>*_]*From[ \t]*:[ \t]*(.+)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\bSender[ \t]*:[ \t]*(.+)", re.IGNORECASE),
]

TO_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^[ \t>*_]*To[ \t]*:[ \t]*(.+)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\bRecipient[ \t]*:[ \t]*(.+)", re.IGNORECASE),
]

# Greeting markers, each preceded by at least one blank line
GREETING_PATTERNS: List[Pattern[str]] = [
    re.compile(rf"\n[ \t]*\n[ \t]*({marker}\b.*)", re.DOTALL)
    for marker in ("Dear", "Hello", "Hi", "Greetings")
]

BLANK_LINE = re.compile(r"\n[ \t]*\n")


def _clean_header(value: str) -> str:
    """Strip markdown emphasis and wrapping quotes from a header value."""
    value = value.strip().strip("*_").strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1].strip()
    return value


def _first_match(patterns: List[Pattern[str]], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = _clean_header(match.group(1))
            if value:
                return value
    return None


# ===========================================
# Record-derived Defaults
# ===========================================

def default_subject(record: ProposalRecord) -> str:
    return f"Proposal for {record.client_company}: {record.service_name}"


def default_sender(record: ProposalRecord) -> str:
    email = record.contact_email
    if email:
        return f"{record.sender_name} <{email}>"
    return f"{record.sender_name}, {record.company_name}"


def default_recipient(record: ProposalRecord) -> str:
    return f"{record.client_contact}, {record.client_company}"


def placeholder_values(record: ProposalRecord) -> Dict[str, str]:
    """Bracket placeholders commonly left in drafts and what replaces them."""
    email = record.contact_email or ""
    return {
        "[your name]": record.sender_name,
        "[your title]": "",
        "[your position]": "",
        "[your company]": record.company_name,
        "[company name]": record.company_name,
        "[client name]": record.client_contact,
        "[phone number]": "",
        "[your phone]": "",
        "[your phone number]": "",
        "[email address]": email,
        "[your email]": email,
        "[website]": "",
        "[your website]": "",
    }


def substitute_placeholders(text: str, record: ProposalRecord) -> str:
    """Replace known placeholders (case-insensitive) and tidy leftover blank lines."""
    values = placeholder_values(record)
    pattern = re.compile("|".join(re.escape(key) for key in values), re.IGNORECASE)
    text = pattern.sub(lambda m: values[m.group(0).lower()], text)

    lines = [line.rstrip(" \t,") if line.strip(" \t,") == "" else line.rstrip() for line in text.split("\n")]
    text = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def render_preview_html(body: str) -> str:
    """Escaped HTML paragraphs for the email preview pane."""
    paragraphs = [p.strip() for p in BLANK_LINE.split(body) if p.strip()]
    return "".join(
        f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs
    )


# ===========================================
# Extraction
# ===========================================

def extract_body(text: str) -> str:
    """
    Locate the message body in a free-text draft.

    Tries the greeting markers in order, then everything after the first
    blank-line-separated block, then all lines after the fifth.
    """
    for pattern in GREETING_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()

    parts = BLANK_LINE.split(text.strip(), maxsplit=1)
    if len(parts) == 2 and parts[1].strip():
        return parts[1].strip()

    lines = text.strip().split("\n")
    if len(lines) > 5:
        return "\n".join(lines[5:]).strip()

    return text.strip()


def build_default_email(record: ProposalRecord) -> EmailArtifact:
    """Template email used whenever no webhook data is usable."""
    signature = "\n".join(
        line for line in (record.sender_name, record.company_name, record.contact_details) if line
    )
    body = (
        f"Dear {record.client_contact},\n\n"
        f"Thank you for the opportunity to propose {record.service_name} "
        f"for {record.client_company}.\n\n"
        f"{record.solution_overview}\n\n"
        f"Key deliverable: {record.key_deliverable}\n"
        f"Pricing: {record.pricing_details}\n"
        f"Timeline: {record.timeline}\n\n"
        f"Please find the full proposal attached. I would be glad to walk you "
        f"through it at your convenience.\n\n"
        f"Best regards,\n{signature}"
    )
    return EmailArtifact(
        subject=default_subject(record),
        body=body,
        to=default_recipient(record),
        sender=default_sender(record),
        preview_html=render_preview_html(body),
    )


def extract_email_from_text(text: str, record: ProposalRecord) -> EmailArtifact:
    """
    Reconstruct an email from a free-text draft.

    Args:
        text: Raw draft returned by the automation tool
        record: Proposal used for defaults and placeholder values

    Returns:
        Extracted EmailArtifact, or the default template if parsing fails
    """
    try:
        if not text or not text.strip():
            raise ValueError("empty email text")

        subject = _first_match(SUBJECT_PATTERNS, text) or default_subject(record)
        sender = _first_match(FROM_PATTERNS, text) or default_sender(record)
        to = _first_match(TO_PATTERNS, text) or default_recipient(record)
        body = substitute_placeholders(extract_body(text), record)

        if not body:
            raise ValueError("no body found in email text")

        return EmailArtifact(
            subject=substitute_placeholders(subject, record),
            body=body,
            to=to,
            sender=sender,
            preview_html=render_preview_html(body),
        )
    except Exception as e:
        logger.warning(f"Email text extraction failed, using template: {e}")
        return build_default_email(record)
