# leaddesk/routes/__init__.py
"""
API route handlers organized by domain.
"""

from leaddesk.routes.admin import router as admin_router
from leaddesk.routes.enroll import router as enroll_router
from leaddesk.routes.health import router as health_router
from leaddesk.routes.leads import router as leads_router

__all__ = [
    "admin_router",
    "enroll_router",
    "health_router",
    "leads_router",
]
