"""Shared plumbing for the entity managers."""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel

from rolegraph.core.config import ExtensionField
from rolegraph.core.exceptions import ValidationError, required_error
from rolegraph.core.rbac.checker import ResolvedUser


def as_data(obj: Any) -> Dict[str, Any]:
    """Normalize a descriptor (dict or pydantic model) into a dict."""
    if obj is None:
        return {}
    if isinstance(obj, BaseModel):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, dict):
        return dict(obj)
    raise ValidationError(f"Expected a mapping, got {type(obj).__name__}")


def unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


class EntityManager:
    """Base for the permission, role and user managers."""

    kind: str = ""
    base_fields: tuple = ()

    def __init__(self, store, extensions: Optional[Dict[str, ExtensionField]] = None):
        self.store = store
        self.extensions = extensions or {}

    def _require(self, value: Any, operation: str, field: str) -> None:
        if not value:
            raise required_error(self.kind, operation, field)

    def _split_extra(self, data: Dict[str, Any], operation: str) -> Dict[str, Any]:
        """Pull declared extension fields out of ``data`` into an ``extra`` map.

        On ``add``, missing fields get their declared defaults and required
        ones are enforced. Errors carry ``operation``.

        Raises:
            ValidationError: On undeclared fields or missing required ones
        """
        extra = dict(data.pop("extra", None) or {})
        for key in list(data):
            if key in self.base_fields:
                continue
            if key not in self.extensions:
                raise ValidationError(
                    f"Unknown {self.kind} field: {key}", operation=operation, field=key
                )
            extra[key] = data.pop(key)

        if operation == "add":
            for name, declared in self.extensions.items():
                if name in extra:
                    continue
                if declared.required:
                    raise ValidationError(
                        f"Missing required {self.kind} field: {name}", operation=operation, field=name
                    )
                extra[name] = declared.default
        return extra

    async def _record(self, record):
        """Accept an ORM record, a lean dict or a resolved user view."""
        if isinstance(record, ResolvedUser):
            record = record.user
        if isinstance(record, dict):
            self._require(record.get("id"), "update", "an id")
            loaded = await self.store.find_one(self.kind, {"id": record["id"]})
            if loaded is None:
                raise ValidationError(f"{self.kind.capitalize()} {record['id']} no longer exists")
            return loaded
        return record

    async def edit(self, record, new_data):
        """
        Edit a record's properties and persist it.

        Args:
            record: Record to change
            new_data: Fields to set; extension fields go into ``extra``

        Returns:
            The saved record
        """
        record = await self._record(record)
        data = as_data(new_data)
        self._validate_edit(data)
        extra = self._split_extra(data, "edit")
        for key, value in data.items():
            if key not in record.editable_fields:
                raise ValidationError(
                    f"Field {key} of {self.kind} cannot be edited", operation="edit", field=key
                )
            setattr(record, key, value)
        if extra:
            record.extra = {**(record.extra or {}), **extra}
        return await self.store.save(record)

    def _validate_edit(self, data: Dict[str, Any]) -> None:
        pass

    async def _set_ids(self, record, field: str, ids: List[str]):
        setattr(record, field, unique(ids))
        return await self.store.save(record)
