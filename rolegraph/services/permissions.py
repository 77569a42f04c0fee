"""Permission records: creation, lookup, edits and removal."""

from typing import Any, Dict, Optional, Sequence

from rolegraph.core.exceptions import ValidationError
from rolegraph.core.logger import get_logger
from rolegraph.core.rbac.permissions import OPERATION_VALUES, Operation, is_valid_operation, namespace
from rolegraph.services.base import EntityManager, as_data

logger = get_logger("permissions")


def _normalize_operation(data: Dict[str, Any]) -> None:
    operation = data.get("operation")
    if isinstance(operation, Operation):
        data["operation"] = operation = operation.value
    if operation is not None and not is_valid_operation(operation):
        raise ValidationError(
            f"Invalid operation: {operation}. Must be one of: {', '.join(sorted(OPERATION_VALUES))}",
            field="operation",
        )


class PermissionManager(EntityManager):
    kind = "permission"
    base_fields = ("name", "operation", "display_name", "description")

    async def add(self, permission):
        """
        Add a permission, or return the existing one with the same name and operation.

        Args:
            permission: Descriptor with ``name`` and ``operation`` (required),
                optional ``display_name``, ``description`` and extension fields

        Returns:
            Permission record

        Raises:
            ValidationError: If name or operation is missing or invalid
        """
        data = as_data(permission)
        self._require(data.get("name"), "add", "permission.name and permission.operation")
        self._require(data.get("operation"), "add", "permission.name and permission.operation")
        _normalize_operation(data)

        data.setdefault("display_name", None)
        data["display_name"] = data["display_name"] or namespace(data["name"], data["operation"])
        data.setdefault("description", None)
        data["extra"] = self._split_extra(data, "add")

        record = await self.store.upsert_by_match(
            self.kind,
            {"name": data["name"], "operation": data["operation"]},
            data,
        )
        logger.debug(f"Permission {record.namespace} ready ({record.id})")
        return record

    async def remove(self, parameters: Dict[str, Any]) -> int:
        """
        Remove every permission matching ``parameters``.

        Args:
            parameters: Filter; ``name`` is required

        Returns:
            Number of permissions removed
        """
        parameters = as_data(parameters)
        self._require(parameters.get("name"), "remove", "a permission.name")
        _normalize_operation(parameters)
        removed = await self.store.remove(self.kind, parameters)
        logger.info(f"Removed {removed} permission(s) matching {parameters}")
        return removed

    async def get(
        self,
        parameters: Optional[Dict[str, Any]] = None,
        *,
        select: Optional[Sequence[str]] = None,
        lean: bool = False,
    ):
        """Get the first permission matching ``parameters``; ``None`` if nothing matches."""
        return await self.store.find_one(self.kind, as_data(parameters), select=select, lean=lean)

    async def get_all(
        self,
        filter: Optional[Dict[str, Any]] = None,
        *,
        select: Optional[Sequence[str]] = None,
        lean: bool = False,
    ) -> list:
        """Get every permission matching ``filter``."""
        return await self.store.find(self.kind, as_data(filter), select=select, lean=lean)

    def _validate_edit(self, data: Dict[str, Any]) -> None:
        _normalize_operation(data)
