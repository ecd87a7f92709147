"""Artifacts extracted from webhook responses."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FileArtifact(BaseModel):
    """Generated proposal document."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    file_name: str = Field(..., description="Suggested download name")
    file_extension: str = Field(..., description="Extension without the dot")
    mime_type: str = Field(..., description="MIME type of the document")
    file_size: int = Field(..., ge=0, description="Size in bytes")
    file_url: str = Field(..., description="Data URI or remote URL for the bytes")
    file_content: Optional[str] = Field(None, description="Inline content, when provided")


class EmailArtifact(BaseModel):
    """Notification email preview."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    subject: str = Field(..., description="Email subject")
    body: str = Field(..., description="Plain-text body")
    to: str = Field(..., description="Recipient")
    sender: Optional[str] = Field(None, alias="from", description="Sender")
    preview_html: Optional[str] = Field(None, description="HTML rendering of the body")
