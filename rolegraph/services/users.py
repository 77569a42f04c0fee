"""User records and their resolved authorization views."""

import uuid
from typing import Any, Dict, List, Optional, Sequence

from rolegraph.core.exceptions import NotFoundError
from rolegraph.core.logger import get_logger
from rolegraph.core.rbac.checker import ResolvedUser
from rolegraph.core.rbac.graph import Resolution
from rolegraph.services.base import EntityManager, as_data, unique

logger = get_logger("users")


def _looks_like_id(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


class UserManager(EntityManager):
    kind = "user"
    base_fields = ("user_name", "roles")

    def __init__(self, store, resolver, graph, extensions=None):
        super().__init__(store, extensions)
        self.resolver = resolver
        self.graph = graph

    async def add(self, user):
        """
        Add a user, or return the existing one with the same user name.

        ``roles`` holds role names, resolved to ids for new users only.
        Names that match nothing are dropped.

        Args:
            user: Descriptor with ``user_name`` (required)

        Returns:
            User record

        Raises:
            ValidationError: If the user name is missing
        """
        data = as_data(user)
        self._require(data.get("user_name"), "add", "a user name")
        role_names = list(data.get("roles") or [])
        data["extra"] = self._split_extra(data, "add")

        match = {"user_name": data["user_name"]}
        existing = await self.store.find_one(self.kind, match)
        if existing is not None:
            return existing

        data["roles"] = unique(await self.resolver.resolve_role_ids(role_names))
        record = await self.store.upsert_by_match(self.kind, match, data)
        logger.debug(f"User {record.user_name} ready ({record.id}) with {len(record.roles)} role(s)")
        return record

    async def remove(self, user_name: str) -> int:
        """
        Remove the user named ``user_name``.

        Returns:
            Number of users removed
        """
        self._require(user_name, "remove", "a user name")
        removed = await self.store.remove(self.kind, {"user_name": user_name})
        logger.info(f"Removed {removed} user(s) named {user_name}")
        return removed

    async def _resolve(self, filter: Dict[str, Any], key: str, lean: bool) -> ResolvedUser:
        user = await self.store.find_one(self.kind, filter, lean=lean)
        if user is None:
            raise NotFoundError(self.kind, key)
        return await self.graph.resolve_user(user)

    async def get(self, user_name: str, *, lean: bool = False) -> ResolvedUser:
        """
        Get a user by user name, with effective permissions and roles.

        Raises:
            NotFoundError: If no user has that name
        """
        self._require(user_name, "get", "a user name")
        return await self._resolve({"user_name": user_name}, user_name, lean)

    async def get_by_id(self, user_id: str, *, lean: bool = False) -> ResolvedUser:
        """
        Get a user by id, with effective permissions and roles.

        Raises:
            NotFoundError: If no user has that id
        """
        self._require(user_id, "getById", "a user id")
        return await self._resolve({"id": user_id}, user_id, lean)

    async def get_full(self, identifier: str) -> Dict[str, Any]:
        """
        Get plain user data by id or user name.

        The ``permissions`` and ``roles`` keys hold the effective sets as
        dicts rather than the stored role ids.

        Raises:
            NotFoundError: If no user matches
        """
        self._require(identifier, "getFull", "a userName or userId")
        field = "id" if _looks_like_id(identifier) else "user_name"
        resolved = await self._resolve({field: identifier}, identifier, lean=False)
        return resolved.to_dict()

    async def get_all(
        self,
        filter: Optional[Dict[str, Any]] = None,
        *,
        select: Optional[Sequence[str]] = None,
        lean: bool = False,
    ) -> list:
        """Get every user matching ``filter`` (stored data, not resolved)."""
        return await self.store.find(self.kind, as_data(filter), select=select, lean=lean)

    async def add_roles(self, user, role_ids: List[str]):
        """Add role ids to the user."""
        user = await self._record(user)
        return await self._set_ids(user, "roles", [*(user.roles or []), *role_ids])

    async def remove_roles(self, user, role_ids: List[str]):
        """Remove role ids from the user."""
        user = await self._record(user)
        drop = set(role_ids)
        return await self._set_ids(user, "roles", [rid for rid in (user.roles or []) if rid not in drop])

    async def get_roles(self, user, populate: bool = True) -> Resolution:
        """Effective roles of the user."""
        user = await self._record(user)
        return await self.graph.get_effective_roles(user, populate=populate)

    async def get_permissions(self, user, populate: bool = True) -> Resolution:
        """Effective permissions of the user."""
        user = await self._record(user)
        return await self.graph.get_effective_permissions(user, populate=populate)
