# leaddesk/schemas/lead.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


def _text(value: Any) -> str:
    return str(value or "").strip()


class LeadRecord(BaseModel):
    """Canonical lead shape returned to the admin dashboard."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    timestamp: str
    full_name: str = ""
    email: str = ""
    phone: str = ""
    experience: str = ""
    current_role: str = ""
    goal: str = ""
    utm_summary: str = ""
    source_page: str = ""
    client_ip: str = ""
    user_agent: str = ""
    action: str = ""
    lead_source: str = ""
    campaign_name: str = ""
    call_status: str = ""
    interest_status: str = ""
    join_timeline: str = ""
    join_status: str = ""
    next_follow_up: str = ""
    call_notes: str = ""
    last_contacted_at: Optional[str] = None
    updated_at: str = ""


class LeadSubmission(BaseModel):
    """Public enroll form payload. Missing keys arrive as empty strings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    full_name: str = ""
    email: str = ""
    phone: str = ""
    experience: str = ""
    current_role: str = ""
    goal: str = ""
    utm_summary: str = ""
    lead_source: str = ""
    campaign_name: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text(value)

    def missing_required(self) -> list[str]:
        required = {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "experience": self.experience,
        }
        return [name for name, value in required.items() if not value]
