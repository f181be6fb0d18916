# leaddesk/routes/enroll.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leaddesk.core.config import settings
from leaddesk.core.exceptions import ValidationError
from leaddesk.db.session import get_session
from leaddesk.schemas.lead import LeadSubmission
from leaddesk.services import lead_store
from leaddesk.services.sheets_webhook import mirror_lead
from leaddesk.services.validation import check_max_length, is_valid_email

router = APIRouter(prefix="/enroll", tags=["enroll"])


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


@router.post("/lead")
async def submit_lead(
    submission: LeadSubmission,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    """Public enroll form endpoint."""
    if submission.missing_required():
        raise ValidationError("Missing required fields: fullName, email, phone, experience.")
    if not is_valid_email(submission.email):
        raise ValidationError("Invalid email address.")
    check_max_length(submission.goal, settings.goal_max_length, "Learning goal")

    record = submission.model_dump(by_alias=True)
    record.update(
        sourcePage="/enroll",
        clientIp=client_ip(request),
        userAgent=request.headers.get("user-agent", "unknown"),
    )

    lead = await lead_store.add_lead(session, record)
    mirror = await mirror_lead(lead.model_dump(by_alias=True))

    return {
        "ok": True,
        "message": "Lead saved successfully.",
        "id": lead.id,
        "webhookForwarded": bool(mirror and mirror.success),
    }
