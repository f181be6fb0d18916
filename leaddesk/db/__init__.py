# leaddesk/db/__init__.py
"""
Database package for SQLAlchemy setup and session management.
"""

from leaddesk.db.base import Base
from leaddesk.db.session import get_session, get_sessionmaker, session_scope

__all__ = [
    "Base",
    "get_session",
    "get_sessionmaker",
    "session_scope",
]
