# leaddesk/services/__init__.py
"""
Business logic services: admin sessions, lead persistence, sheet mirroring.
"""

from leaddesk.services.admin_auth import (
    ADMIN_COOKIE_NAME,
    build_logout_cookie,
    build_session_cookie,
    is_authenticated,
    issue_token,
    validate_credentials,
    verify_token,
)
from leaddesk.services.lead_store import (
    add_lead,
    delete_lead_by_id,
    ensure_schema,
    get_all_leads,
    get_database_status,
    update_lead_by_id,
)

__all__ = [
    # Admin sessions
    "ADMIN_COOKIE_NAME",
    "build_logout_cookie",
    "build_session_cookie",
    "is_authenticated",
    "issue_token",
    "validate_credentials",
    "verify_token",
    # Lead store
    "add_lead",
    "delete_lead_by_id",
    "ensure_schema",
    "get_all_leads",
    "get_database_status",
    "update_lead_by_id",
]
