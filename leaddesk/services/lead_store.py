# leaddesk/services/lead_store.py
"""
Persistence for enroll leads.

The store provisions its own table on first use (``ensure_schema``) so a fresh
database needs no migration runner. Every operation takes the caller's
``AsyncSession``; opening and closing sessions is the caller's job.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit
from uuid import uuid4

from sqlalchemy import delete, func, inspect, select, text, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.schema import CreateColumn, CreateIndex, CreateTable

from leaddesk.core.config import settings
from leaddesk.core.exceptions import DatabaseError
from leaddesk.core.logging import get_structlog_logger
from leaddesk.db.session import session_scope
from leaddesk.models.lead import OPTIONAL_COLUMNS, EnrollLead
from leaddesk.schemas.admin import DatabaseStatus
from leaddesk.schemas.lead import LeadRecord

logger = get_structlog_logger(__name__)

DEFAULT_CALL_STATUS = "Not Called"
DEFAULT_INTEREST_STATUS = "Not Assessed"
DEFAULT_JOIN_STATUS = "Pending"
DEFAULT_LEAD_SOURCE = "Meta Ads"
DEFAULT_SOURCE_PAGE = "/enroll"
DEFAULT_CLIENT_VALUE = "unknown"
DEFAULT_ACTION = "request_callback"

# Request key -> model attribute. Keys outside this map are never written by an update.
PATCHABLE_FIELDS: Dict[str, str] = {
    "fullName": "full_name",
    "email": "email",
    "phone": "phone",
    "experience": "experience",
    "currentRole": "current_role",
    "goal": "goal",
    "callStatus": "call_status",
    "interestStatus": "interest_status",
    "joinTimeline": "join_timeline",
    "joinStatus": "join_status",
    "nextFollowUp": "next_follow_up",
    "callNotes": "call_notes",
    "lastContactedAt": "last_contacted_at",
    "action": "action",
}

# An update may replace these but never blank them.
PROTECTED_FIELDS = frozenset({"fullName", "email", "phone", "experience", "action"})

_schema_ready = False

# Driver connect failures (refused, DNS, timeout) surface as OSError or
# TimeoutError without passing through SQLAlchemy.
STORAGE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def sanitize(value: Any) -> str:
    return str(value or "").strip()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we write is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Best-effort parse of an ISO string, datetime or epoch milliseconds."""
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    raw = sanitize(value)
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return _as_utc(parsed)


def format_instant(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def lead_from_row(row: EnrollLead) -> LeadRecord:
    timestamp = format_instant(row.timestamp) or ""
    return LeadRecord(
        id=sanitize(row.id),
        timestamp=timestamp,
        full_name=sanitize(row.full_name),
        email=sanitize(row.email),
        phone=sanitize(row.phone),
        experience=sanitize(row.experience),
        current_role=sanitize(row.current_role),
        goal=sanitize(row.goal),
        utm_summary=sanitize(row.utm_summary),
        source_page=sanitize(row.source_page),
        client_ip=sanitize(row.client_ip),
        user_agent=sanitize(row.user_agent),
        action=sanitize(row.action),
        lead_source=sanitize(row.lead_source),
        campaign_name=sanitize(row.campaign_name),
        call_status=sanitize(row.call_status),
        interest_status=sanitize(row.interest_status),
        join_timeline=sanitize(row.join_timeline),
        join_status=sanitize(row.join_status),
        next_follow_up=sanitize(row.next_follow_up),
        call_notes=sanitize(row.call_notes),
        last_contacted_at=format_instant(row.last_contacted_at),
        updated_at=format_instant(row.updated_at) or timestamp,
    )


def _storage_error(event: str, exc: BaseException) -> DatabaseError:
    cause = getattr(exc, "orig", None) or exc
    message = str(cause).strip()
    if not message and isinstance(exc, asyncio.TimeoutError):
        message = "Database operation timed out."
    message = message or "Database operation failed."
    logger.error(event, error=message, error_type=type(exc).__name__)
    return DatabaseError(message=message, details={"error_type": type(exc).__name__})


def _provision_schema(connection: Connection) -> List[str]:
    table = EnrollLead.__table__
    dialect = connection.dialect

    connection.execute(CreateTable(table, if_not_exists=True))

    existing = {column["name"] for column in inspect(connection).get_columns(table.name)}
    columns_by_name = {column.name: column for column in table.columns}
    table_name = dialect.identifier_preparer.format_table(table)
    # Postgres can guard each ALTER itself, which keeps racing cold starts harmless.
    guard = "IF NOT EXISTS " if dialect.name == "postgresql" else ""

    added = []
    for name in OPTIONAL_COLUMNS:
        if name in existing:
            continue
        column_ddl = CreateColumn(columns_by_name[name]).compile(dialect=dialect)
        try:
            connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {guard}{column_ddl}"))
        except OperationalError as e:
            # Another process added it after we inspected the table.
            if "duplicate column" not in str(e.orig).lower():
                raise
            continue
        added.append(name)

    for index in table.indexes:
        connection.execute(CreateIndex(index, if_not_exists=True))

    connection.execute(
        update(table)
        .where(table.c.updatedAt.is_(None))
        .values({table.c.updatedAt: table.c.timestamp})
    )
    return added


async def ensure_schema(session: AsyncSession) -> None:
    """Create the leads table, missing columns and the timestamp index.

    Safe to call on every request: the statements are idempotent and the
    module flag only skips repeat work.
    """
    global _schema_ready

    if _schema_ready:
        return

    try:
        connection = await session.connection()
        added = await connection.run_sync(_provision_schema)
        await session.commit()
    except STORAGE_ERRORS as e:
        await session.rollback()
        raise _storage_error("lead_store.schema_failed", e) from e

    _schema_ready = True
    logger.info("lead_store.schema_ready", added_columns=added)


def reset_schema_state() -> None:
    """Forget that the schema was provisioned (new database, tests)."""
    global _schema_ready
    _schema_ready = False


async def add_lead(session: AsyncSession, record: Mapping[str, Any]) -> LeadRecord:
    """Persist a new lead. Any ``id`` in ``record`` is ignored."""
    await ensure_schema(session)

    now = _utcnow()
    lead = EnrollLead(
        id=str(uuid4()),
        timestamp=parse_datetime(record.get("timestamp")) or now,
        full_name=sanitize(record.get("fullName")),
        email=sanitize(record.get("email")),
        phone=sanitize(record.get("phone")),
        experience=sanitize(record.get("experience")),
        current_role=sanitize(record.get("currentRole")),
        goal=sanitize(record.get("goal")),
        utm_summary=sanitize(record.get("utmSummary")),
        source_page=sanitize(record.get("sourcePage")) or DEFAULT_SOURCE_PAGE,
        client_ip=sanitize(record.get("clientIp")) or DEFAULT_CLIENT_VALUE,
        user_agent=sanitize(record.get("userAgent")) or DEFAULT_CLIENT_VALUE,
        action=sanitize(record.get("action")) or DEFAULT_ACTION,
        lead_source=sanitize(record.get("leadSource")) or DEFAULT_LEAD_SOURCE,
        campaign_name=sanitize(record.get("campaignName")),
        call_status=sanitize(record.get("callStatus")) or DEFAULT_CALL_STATUS,
        interest_status=sanitize(record.get("interestStatus")) or DEFAULT_INTEREST_STATUS,
        join_timeline=sanitize(record.get("joinTimeline")),
        join_status=sanitize(record.get("joinStatus")) or DEFAULT_JOIN_STATUS,
        next_follow_up=sanitize(record.get("nextFollowUp")),
        call_notes=sanitize(record.get("callNotes")),
        last_contacted_at=parse_datetime(record.get("lastContactedAt")),
        updated_at=now,
    )

    try:
        session.add(lead)
        await session.commit()
    except STORAGE_ERRORS as e:
        await session.rollback()
        raise _storage_error("lead_store.add_failed", e) from e

    logger.info("lead.created", lead_id=lead.id, source_page=lead.source_page)
    return lead_from_row(lead)


async def get_all_leads(session: AsyncSession, limit: Optional[int] = None) -> List[LeadRecord]:
    """Newest first, capped at ``settings.lead_list_limit`` rows."""
    await ensure_schema(session)

    stmt = (
        select(EnrollLead)
        .order_by(EnrollLead.timestamp.desc())
        .limit(limit or settings.lead_list_limit)
    )
    try:
        result = await session.execute(stmt)
    except STORAGE_ERRORS as e:
        raise _storage_error("lead_store.list_failed", e) from e

    return [lead_from_row(row) for row in result.scalars().all()]


async def update_lead_by_id(
    session: AsyncSession,
    lead_id: str,
    patch: Mapping[str, Any],
) -> Optional[LeadRecord]:
    """Apply a partial update; returns None when the lead does not exist."""
    await ensure_schema(session)

    lead_id = sanitize(lead_id)
    if not lead_id:
        return None

    try:
        lead = await session.get(EnrollLead, lead_id)
    except STORAGE_ERRORS as e:
        raise _storage_error("lead_store.lookup_failed", e) from e
    if lead is None:
        return None

    changed = []
    for key, value in patch.items():
        attribute = PATCHABLE_FIELDS.get(key)
        if attribute is None:
            continue
        if key == "lastContactedAt":
            setattr(lead, attribute, parse_datetime(value))
            changed.append(key)
            continue
        cleaned = sanitize(value)
        if key in PROTECTED_FIELDS and not cleaned:
            continue
        setattr(lead, attribute, cleaned)
        changed.append(key)

    now = _utcnow()
    previous = lead.updated_at
    lead.updated_at = max(now, _as_utc(previous)) if previous is not None else now

    try:
        await session.commit()
    except STORAGE_ERRORS as e:
        await session.rollback()
        raise _storage_error("lead_store.update_failed", e) from e

    logger.info("lead.updated", lead_id=lead_id, fields=changed)
    return lead_from_row(lead)


async def delete_lead_by_id(session: AsyncSession, lead_id: str) -> bool:
    await ensure_schema(session)

    lead_id = sanitize(lead_id)
    if not lead_id:
        return False

    try:
        result = await session.execute(delete(EnrollLead).where(EnrollLead.id == lead_id))
        await session.commit()
    except STORAGE_ERRORS as e:
        await session.rollback()
        raise _storage_error("lead_store.delete_failed", e) from e

    deleted = (result.rowcount or 0) > 0
    if deleted:
        logger.info("lead.deleted", lead_id=lead_id)
    return deleted


async def count_leads(session: AsyncSession) -> int:
    await ensure_schema(session)
    try:
        result = await session.execute(select(func.count()).select_from(EnrollLead))
    except STORAGE_ERRORS as e:
        raise _storage_error("lead_store.count_failed", e) from e
    return int(result.scalar_one())


def database_host(database_url: str) -> str:
    """Host[:port] of a connection string, or a sentinel; never raises."""
    try:
        parts = urlsplit(database_url)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return "invalid-url"
    if not parts.scheme or "://" not in database_url:
        return "invalid-url"
    host = parts.netloc.rpartition("@")[2]
    return host or "unknown"


async def get_database_status(database_url: Optional[str] = None) -> DatabaseStatus:
    """Report configuration and row count without connecting when unconfigured."""
    if database_url is None:
        database_url = settings.resolved_database_url()
    if not database_url:
        return DatabaseStatus(configured=False, host="not-configured", total_leads=0)

    host = database_host(database_url)
    async with session_scope() as session:
        total = await count_leads(session)

    return DatabaseStatus(configured=True, host=host, total_leads=total)
