# leaddesk/schemas/__init__.py
"""
Pydantic schemas for request/response validation and serialization.
"""

from leaddesk.schemas.admin import DatabaseStatus, LoginRequest
from leaddesk.schemas.lead import LeadRecord, LeadSubmission

__all__ = [
    "DatabaseStatus",
    "LeadRecord",
    "LeadSubmission",
    "LoginRequest",
]
