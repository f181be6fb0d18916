# leaddesk/services/sheets_webhook.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import aiohttp

from leaddesk.core.config import settings
from leaddesk.core.exceptions import ConfigurationError
from leaddesk.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Fields the spreadsheet script expects, in column order.
SHEET_FIELDS = (
    "id",
    "timestamp",
    "fullName",
    "email",
    "phone",
    "experience",
    "currentRole",
    "goal",
    "utmSummary",
    "sourcePage",
    "clientIp",
    "userAgent",
)


@dataclass(frozen=True)
class MirrorResult:
    success: bool
    http_status: Optional[int]
    error_message: Optional[str]


def build_webhook_request(
    url: str,
    token: Optional[str],
    lead: Mapping[str, Any],
) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """Return (url, headers, payload) for a sheet mirror POST.

    The token travels three ways (query string, header, body) because Apps
    Script deployments only expose some of them to the script.
    """
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError("Google Sheets webhook URL is invalid.")

    headers = {"Content-Type": "application/json"}
    payload: Dict[str, Any] = {field: lead.get(field, "") for field in SHEET_FIELDS}

    if token:
        query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "token"]
        query.append(("token", token))
        parts = parts._replace(query=urlencode(query))
        headers["x-webhook-token"] = token
        payload["token"] = token

    return urlunsplit(parts), headers, payload


async def mirror_lead(lead: Mapping[str, Any]) -> Optional[MirrorResult]:
    """POST a stored lead to the configured sheet webhook.

    Returns None when no webhook is configured. Failures are reported, not
    raised: the lead is already persisted.
    """
    if not settings.google_sheets_webhook_url:
        return None

    try:
        url, headers, payload = build_webhook_request(
            settings.google_sheets_webhook_url,
            settings.google_sheets_webhook_token,
            lead,
        )
    except ConfigurationError as e:
        logger.warning("sheets_webhook.invalid_url", error=e.message)
        return MirrorResult(False, None, e.message)

    try:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                json=payload,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=settings.webhook_timeout_seconds),
            ) as response:
                status = response.status
                if 200 <= status < 300:
                    logger.info("sheets_webhook.delivered", lead_id=lead.get("id"), http_status=status)
                    return MirrorResult(True, status, None)
                error_text = await response.text()
                message = f"Webhook rejected lead. Status {status}. {error_text[:200]}"
    except asyncio.TimeoutError:
        status = None
        message = "Google Sheets webhook timed out."
    except aiohttp.ClientError as e:
        status = None
        message = f"Failed to connect to Google Sheets webhook: {str(e)[:200]}"

    logger.warning("sheets_webhook.failed", lead_id=lead.get("id"), http_status=status, error=message)
    return MirrorResult(False, status, message)
