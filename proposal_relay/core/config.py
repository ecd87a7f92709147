"""Configuration management for Proposal Relay."""

import os
import tempfile
from functools import lru_cache
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # Automation Webhooks
    # ===========================================
    PROPOSAL_WEBHOOK_URL: str = Field(default="", description="Proposal/PDF generation webhook")
    EMAIL_WEBHOOK_URL: str = Field(default="", description="Email composition webhook")
    WEBHOOK_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        gt=0,
        description="Per-call timeout for outbound webhook requests"
    )

    # ===========================================
    # Request Gate
    # ===========================================
    API_KEY: str = Field(default="", description="Shared secret expected in X-API-Key")
    SITE_URL: str = Field(default="", description="Public origin of the form wizard")
    ALLOWED_ORIGINS: str = Field(
        default="",
        description="Comma-separated cross-origin allow list"
    )

    # ===========================================
    # Rate Limiting
    # ===========================================
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=10, gt=0, description="Requests per window")
    RATE_LIMIT_WINDOW_SECONDS: float = Field(default=60.0, gt=0, description="Window length")

    # ===========================================
    # Local Backup
    # ===========================================
    SERVERLESS: bool = Field(
        default=False,
        description="Write backups to the temp directory instead of the project"
    )
    BACKUP_DIR: str = Field(default="", description="Explicit backup directory override")

    # ===========================================
    # Server Configuration
    # ===========================================
    DEBUG: bool = Field(default=False, description="Debug mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip().rstrip("/") for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


# ===========================================
# Form Field Labels
# ===========================================
# Wire names used by the form wizard mapped to the labels it shows the user.

FORM_FIELD_LABELS: Dict[str, str] = {
    "clientCompany": "Client Company Name",
    "clientContact": "Client Contact Person",
    "clientIndustry": "Client Industry",
    "serviceName": "Service/Project Name",
    "solutionOverview": "Solution Overview",
    "keyDeliverable": "Key Deliverable",
    "pricingDetails": "Pricing Details",
    "timeline": "Timeline",
    "companyName": "Company Name",
    "senderName": "Sender's Name and Title",
    "contactDetails": "Contact Details",
    "lineItems": "Line Items",
    "name": "Item Name",
    "description": "Item Description",
    "quantity": "Quantity",
    "unitPrice": "Unit Price",
}


PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def resolve_backup_dir(settings: Optional[Settings] = None) -> str:
    """
    Pick the directory local backups are written to.

    Args:
        settings: Settings to read; defaults to the cached instance

    Returns:
        BACKUP_DIR if set, a temp-directory path when SERVERLESS,
        otherwise data/submissions under the project root
    """
    settings = settings or get_settings()

    if settings.BACKUP_DIR:
        return settings.BACKUP_DIR
    if settings.SERVERLESS:
        return os.path.join(tempfile.gettempdir(), "proposal-relay", "submissions")
    return os.path.join(PROJECT_ROOT, "data", "submissions")


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
