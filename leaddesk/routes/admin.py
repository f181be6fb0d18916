# leaddesk/routes/admin.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from leaddesk.core.config import settings
from leaddesk.core.exceptions import AuthenticationError, ValidationError
from leaddesk.core.logging import get_structlog_logger
from leaddesk.schemas.admin import LoginRequest
from leaddesk.services import lead_store
from leaddesk.services.admin_auth import (
    build_logout_cookie,
    build_session_cookie,
    is_authenticated,
    issue_token,
    validate_credentials,
)

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login")
async def login(credentials: LoginRequest, response: Response) -> Dict[str, Any]:
    """Exchange the admin username/password for a session cookie."""
    if not credentials.username or not credentials.password:
        raise ValidationError("Username and password are required.")

    if not validate_credentials(credentials.username, credentials.password):
        logger.warning("admin.login_failed")
        raise AuthenticationError("Invalid admin credentials.")

    response.headers["Set-Cookie"] = build_session_cookie(issue_token())
    logger.info("admin.login_succeeded")
    return {"ok": True, "message": "Admin login successful."}


@router.post("/logout")
async def logout(response: Response) -> Dict[str, Any]:
    response.headers["Set-Cookie"] = build_logout_cookie()
    return {"ok": True, "message": "Admin logout successful."}


@router.get("/session")
async def session_status(request: Request) -> Dict[str, Any]:
    return {"ok": True, "authenticated": is_authenticated(request)}


@router.get("/webhook-status")
async def webhook_status() -> Dict[str, Any]:
    """Where leads are stored and how many there are."""
    status = await lead_store.get_database_status()
    return {
        "ok": True,
        "environment": settings.environment,
        "databaseConfigured": status.configured,
        "databaseHost": status.host,
        "totalLeads": status.total_leads,
    }
