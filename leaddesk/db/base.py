# leaddesk/db/base.py
from __future__ import annotations

from sqlalchemy import MetaData, inspect
from sqlalchemy.orm import DeclarativeBase

# Use naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = MetaData(naming_convention=convention)

    def __repr__(self) -> str:
        # Attribute names may differ from column names, so go through the mapper.
        mapper = inspect(type(self))
        primary = [
            f"{mapper.get_property_by_column(column).key}="
            f"{getattr(self, mapper.get_property_by_column(column).key)!r}"
            for column in mapper.primary_key
        ]
        return f"<{self.__class__.__name__}({', '.join(primary)})>"


__all__ = [
    "Base",
]
