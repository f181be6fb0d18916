# leaddesk/models/__init__.py
"""
SQLAlchemy ORM models for database entities.
"""

from leaddesk.models.lead import EnrollLead

__all__ = [
    "EnrollLead",
]
