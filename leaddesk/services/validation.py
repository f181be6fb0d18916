# leaddesk/services/validation.py
"""Input checks shared by the public enroll form and admin lead edits."""
from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from leaddesk.core.config import settings
from leaddesk.core.exceptions import ValidationError

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return bool(_EMAIL_PATTERN.match(email))


def check_max_length(value: Optional[str], max_length: int, label: str) -> None:
    if value is not None and len(value) > max_length:
        raise ValidationError(f"{label} must be {max_length} characters or fewer.")


def validate_lead_patch(updates: Mapping[str, Any]) -> None:
    """Raise ValidationError for the first unacceptable value in an admin patch."""
    if not updates:
        raise ValidationError("No valid fields provided to update.")

    email = updates.get("email")
    if email and not is_valid_email(email):
        raise ValidationError("Invalid email address.")

    check_max_length(updates.get("goal"), settings.goal_max_length, "Learning goal")
    check_max_length(updates.get("callNotes"), settings.call_notes_max_length, "Call notes")
