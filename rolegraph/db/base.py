import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Type

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def make_base() -> Type[DeclarativeBase]:
    """Return a fresh declarative base.

    Each ``init()`` gets its own metadata so several RBAC instances with
    different table names can live in one process.
    """
    class Base(DeclarativeBase):
        pass

    return Base


class RecordMixin:
    """Columns shared by permission, role and user records."""

    id = Column(String(36), primary_key=True, default=new_id)
    extra = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Fields callers may edit through ``edit()``; set per model
    editable_fields = ()

    def to_dict(self, select: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Plain-dict view of the record (the ``lean`` query form)."""
        keys = [c.key for c in self.__table__.columns]
        if select:
            wanted = set(select) | {"id"}
            keys = [k for k in keys if k in wanted]
        data = {key: getattr(self, key) for key in keys}
        for key, value in data.items():
            if isinstance(value, list):
                data[key] = list(value)
            elif isinstance(value, dict):
                data[key] = dict(value)
        return data

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
