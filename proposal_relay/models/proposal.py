"""Proposal input models - validated form wizard data."""

import re
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class LineItem(BaseModel):
    """A priced line in the proposal."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
        extra="ignore",
    )

    name: str = Field(..., min_length=1, description="Item name")
    description: Optional[str] = Field(None, description="Item description")
    quantity: int = Field(..., gt=0, strict=True, description="Number of units")
    unit_price: float = Field(..., gt=0, strict=True, allow_inf_nan=False, description="Price per unit")

    @property
    def total(self) -> float:
        return self.quantity * self.unit_price


class ProposalRecord(BaseModel):
    """Validated proposal submitted from the form wizard."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
        extra="ignore",
    )

    # Client details
    client_company: str = Field(..., min_length=1, description="Client company name")
    client_contact: str = Field(..., min_length=1, description="Client contact person")
    client_industry: Optional[str] = Field(None, description="Client industry")

    # Solution
    service_name: str = Field(..., min_length=1, description="Service or project name")
    solution_overview: str = Field(..., min_length=1, description="Solution overview")
    key_deliverable: str = Field(..., min_length=1, description="Key deliverable")

    # Pricing
    pricing_details: str = Field(..., min_length=1, description="Pricing details")
    timeline: str = Field(..., min_length=1, description="Delivery timeline")

    # Sender company
    company_name: str = Field(..., min_length=1, description="Sender company name")
    sender_name: str = Field(..., min_length=1, description="Sender name and title")
    contact_details: str = Field(..., min_length=1, description="Sender contact details")

    line_items: Optional[List[LineItem]] = Field(None, description="Optional priced items")

    @field_validator("contact_details")
    @classmethod
    def check_contact_email(cls, value: str) -> str:
        if "@" in value and not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address")
        return value

    @property
    def contact_email(self) -> Optional[str]:
        """Email address in contact_details, if there is one."""
        match = re.search(r"[^\s@<>,;]+@[^\s@<>,;]+\.[^\s@<>,;]+", self.contact_details)
        return match.group(0) if match else None

    def to_payload(self) -> dict:
        """Wire-format dict (camelCase keys, no unset optionals)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
