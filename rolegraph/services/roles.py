"""Role records: creation with name resolution, inheritance and permission sets."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from rolegraph.core.logger import get_logger
from rolegraph.core.rbac.graph import Resolution
from rolegraph.services.base import EntityManager, as_data, unique

logger = get_logger("roles")


class RoleManager(EntityManager):
    kind = "role"
    base_fields = ("name", "display_name", "description", "permissions", "inherit_roles")

    def __init__(self, store, resolver, graph, extensions=None):
        super().__init__(store, extensions)
        self.resolver = resolver
        self.graph = graph

    async def add(self, role):
        """
        Add a role, or return the existing one with the same name.

        ``permissions`` holds permission lookup tokens (``name`` or
        ``name.operation``) and ``inherit_roles`` holds role names; both are
        resolved to ids first. Names that match nothing are dropped.

        Args:
            role: Descriptor with ``name`` (required)

        Returns:
            Role record

        Raises:
            ValidationError: If the name is missing
        """
        data = as_data(role)
        self._require(data.get("name"), "add", "a role name")

        data["display_name"] = data.get("display_name") or data["name"]
        data.setdefault("description", None)
        permission_names = list(data.get("permissions") or [])
        inherit_names = list(data.get("inherit_roles") or [])
        data["extra"] = self._split_extra(data, "add")

        permission_ids, inherit_ids = await asyncio.gather(
            self.resolver.resolve_permission_ids(permission_names),
            self.resolver.resolve_role_ids(inherit_names),
        )
        data["permissions"] = unique(permission_ids)
        data["inherit_roles"] = unique(inherit_ids)

        record = await self.store.upsert_by_match(self.kind, {"name": data["name"]}, data)
        logger.debug(
            f"Role {record.name} ready ({record.id}) with {len(record.permissions)} "
            f"permission(s) and {len(record.inherit_roles)} inherited role(s)"
        )
        return record

    async def remove(self, role_name: str) -> int:
        """
        Remove the role named ``role_name``.

        Returns:
            Number of roles removed
        """
        self._require(role_name, "remove", "a role name")
        removed = await self.store.remove(self.kind, {"name": role_name})
        logger.info(f"Removed {removed} role(s) named {role_name}")
        return removed

    async def get(self, role_name: str, *, select: Optional[Sequence[str]] = None, lean: bool = False):
        """Get a role by name; ``None`` if it doesn't exist."""
        self._require(role_name, "get", "a role name")
        return await self.store.find_one(self.kind, {"name": role_name}, select=select, lean=lean)

    async def get_by_id(self, role_id: str, *, select: Optional[Sequence[str]] = None, lean: bool = False):
        """Get a role by id; ``None`` if it doesn't exist."""
        self._require(role_id, "getById", "a role id")
        return await self.store.find_one(self.kind, {"id": role_id}, select=select, lean=lean)

    async def get_all(
        self,
        filter: Optional[Dict[str, Any]] = None,
        *,
        select: Optional[Sequence[str]] = None,
        lean: bool = False,
    ) -> list:
        """Get every role matching ``filter``."""
        return await self.store.find(self.kind, as_data(filter), select=select, lean=lean)

    async def add_inherited_roles(self, role, role_names: List[str]):
        """Add the roles named in ``role_names`` to the role's inherited roles."""
        role = await self._record(role)
        role_ids = await self.resolver.resolve_role_ids(role_names)
        return await self._set_ids(role, "inherit_roles", [*(role.inherit_roles or []), *role_ids])

    async def remove_inherited_roles(self, role, role_names: List[str]):
        """Remove the roles named in ``role_names`` from the role's inherited roles."""
        role = await self._record(role)
        drop = set(await self.resolver.resolve_role_ids(role_names))
        return await self._set_ids(
            role, "inherit_roles", [rid for rid in (role.inherit_roles or []) if rid not in drop]
        )

    async def add_permissions(self, role, permission_ids: List[str]):
        """Add permission ids to the role."""
        role = await self._record(role)
        return await self._set_ids(role, "permissions", [*(role.permissions or []), *permission_ids])

    async def remove_permissions(self, role, permission_ids: List[str]):
        """Remove permission ids from the role."""
        role = await self._record(role)
        drop = set(permission_ids)
        return await self._set_ids(
            role, "permissions", [pid for pid in (role.permissions or []) if pid not in drop]
        )

    async def get_permissions(self, role, populate: bool = True) -> Resolution:
        """Permissions of the role plus those of the roles it inherits."""
        role = await self._record(role)
        return await self.graph.get_permissions(role, populate=populate)
