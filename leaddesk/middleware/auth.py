# leaddesk/middleware/auth.py
from __future__ import annotations

from typing import Iterable, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from leaddesk.core.config import settings
from leaddesk.core.exceptions import AuthenticationError
from leaddesk.core.logging import get_structlog_logger
from leaddesk.services.admin_auth import is_authenticated

logger = get_structlog_logger(__name__)


class AdminAuthMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated requests to admin routes before they reach a handler."""

    def __init__(
        self,
        app,
        prefix: Optional[str] = None,
        exempt_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        api_prefix = (settings.api_prefix if prefix is None else prefix).rstrip("/")
        self.admin_root = f"{api_prefix}/admin"
        if exempt_paths is None:
            exempt_paths = [
                f"{self.admin_root}/login",
                f"{self.admin_root}/logout",
                f"{self.admin_root}/session",
            ]
        self.exempt_paths = {path.rstrip("/") for path in exempt_paths}

    async def dispatch(self, request: Request, call_next):
        if not self._is_protected(request):
            return await call_next(request)

        if not is_authenticated(request):
            logger.warning("auth.rejected", path=request.url.path, method=request.method)
            error = AuthenticationError()
            return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=error.to_response())

        return await call_next(request)

    def _is_protected(self, request: Request) -> bool:
        if request.method == "OPTIONS":
            return False
        path = request.url.path.rstrip("/")
        if path in self.exempt_paths:
            return False
        return path == self.admin_root or path.startswith(f"{self.admin_root}/")

