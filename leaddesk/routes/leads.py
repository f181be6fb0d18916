# leaddesk/routes/leads.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leaddesk.core.exceptions import NotFoundError, ValidationError
from leaddesk.db.session import get_session
from leaddesk.services import lead_store
from leaddesk.services.lead_store import PATCHABLE_FIELDS, sanitize
from leaddesk.services.validation import validate_lead_patch

# Mounted under /admin; AdminAuthMiddleware guards every route here.
router = APIRouter(prefix="/admin/leads", tags=["leads"])


def _require_lead_id(lead_id: str) -> str:
    lead_id = sanitize(lead_id)
    if not lead_id:
        raise ValidationError("Lead id is required.")
    return lead_id


@router.get("")
async def list_leads(session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    rows = await lead_store.get_all_leads(session)
    return {
        "ok": True,
        "source": "postgres",
        "count": len(rows),
        "rows": [row.model_dump(by_alias=True) for row in rows],
    }


@router.put("/{lead_id}")
async def update_lead(
    lead_id: str,
    payload: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    lead_id = _require_lead_id(lead_id)

    # Unknown keys are dropped, not rejected.
    updates: Dict[str, Any] = {}
    for key, value in payload.items():
        if key not in PATCHABLE_FIELDS:
            continue
        updates[key] = value if key == "lastContactedAt" else sanitize(value)

    validate_lead_patch(updates)

    row = await lead_store.update_lead_by_id(session, lead_id, updates)
    if row is None:
        raise NotFoundError("Lead not found.")

    return {
        "ok": True,
        "message": "Lead updated successfully.",
        "row": row.model_dump(by_alias=True),
    }


@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: str,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    lead_id = _require_lead_id(lead_id)

    if not await lead_store.delete_lead_by_id(session, lead_id):
        raise NotFoundError("Lead not found.")

    return {"ok": True, "message": "Lead deleted successfully."}
