"""Effective role and permission resolution.

Flattens a subject's roles and the roles they inherit into one
deduplicated set, then flattens the permissions of that set.

Inheritance is followed breadth-first for at most ``max_depth`` hops
(default 1). Links beyond the last hop are not traversed; each role whose
links were cut yields a ``Diagnostic`` in the result and a log warning.
Stored data may nest deeper than that.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from rolegraph.core.logger import get_logger
from rolegraph.core.rbac.checker import ResolvedUser

logger = get_logger("graph")

DEPTH_LIMIT_EXCEEDED = "depth_limit_exceeded"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal observation made while resolving."""

    code: str
    message: str
    role_id: Optional[str] = None
    role_name: Optional[str] = None
    ignored: Tuple[str, ...] = ()


@dataclass
class Resolution:
    """Resolved items plus the diagnostics produced along the way.

    ``items`` holds ids when resolved with ``populate=False`` and records
    otherwise. Order is not significant.
    """

    items: list = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ids(self) -> List[str]:
        return [item if isinstance(item, str) else _get(item, "id") for item in self.items]

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class _RoleSet:
    direct: Dict[str, Any]
    inherited: Dict[str, Any]
    diagnostics: List[Diagnostic]

    def union(self) -> List[Any]:
        # Direct record wins when a role is both held and inherited
        keys = list(dict.fromkeys([*self.direct, *self.inherited]))
        return [self.direct.get(key) or self.inherited[key] for key in keys]


def _get(record, name: str, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


class GraphResolver:
    """Computes effective roles and permissions. Never writes."""

    def __init__(self, store, max_depth: int = 1):
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.store = store
        self.max_depth = max_depth

    async def _collect_roles(self, direct_roles: Sequence[Any]) -> _RoleSet:
        """Walk inheritance breadth-first from ``direct_roles``."""
        direct = {_get(role, "id"): role for role in direct_roles}
        inherited: Dict[str, Any] = {}
        diagnostics: List[Diagnostic] = []
        seen = set(direct)

        frontier = list(direct_roles)
        depth = 0
        while frontier:
            # Every link of the last hop is cut, even one into the resolved set
            if depth >= self.max_depth:
                diagnostics.extend(self._depth_diagnostics(frontier, seen))
                break

            pending = _unique(
                role_id
                for role in frontier
                for role_id in (_get(role, "inherit_roles") or [])
                if role_id not in seen
            )
            if not pending:
                break

            fetched = await self.store.populate("role", pending)
            for role in fetched:
                inherited[_get(role, "id")] = role
            seen.update(pending)
            frontier = fetched
            depth += 1

        return _RoleSet(direct=direct, inherited=inherited, diagnostics=diagnostics)

    def _depth_diagnostics(self, frontier: Sequence[Any], seen: set) -> List[Diagnostic]:
        """One diagnostic per role whose ``inherit_roles`` lie past the last hop.

        ``ignored`` lists only the ids that are not already in the result.
        """
        diagnostics = []
        for role in frontier:
            links = _unique(_get(role, "inherit_roles") or [])
            if not links:
                continue
            ignored = tuple(role_id for role_id in links if role_id not in seen)
            role_name = _get(role, "name")
            message = (
                f"Role '{role_name}' inherits {len(links)} role(s) beyond the supported "
                f"inheritance depth of {self.max_depth}; {len(ignored)} of them were not resolved"
            )
            logger.warning(message)
            diagnostics.append(Diagnostic(
                code=DEPTH_LIMIT_EXCEEDED,
                message=message,
                role_id=_get(role, "id"),
                role_name=role_name,
                ignored=ignored,
            ))
        return diagnostics

    async def _user_role_set(self, user) -> _RoleSet:
        direct_roles = await self.store.populate("role", _get(user, "roles") or [])
        return await self._collect_roles(direct_roles)

    async def _permissions_of(self, roles: Iterable[Any], populate: bool) -> list:
        permission_ids = _unique(
            permission_id
            for role in roles
            for permission_id in (_get(role, "permissions") or [])
        )
        if not populate:
            return permission_ids
        return await self.store.populate("permission", permission_ids)

    async def get_effective_roles(self, user, populate: bool = True) -> Resolution:
        """
        Roles a user holds directly plus the roles those inherit.

        Args:
            user: User record (ORM object or lean dict)
            populate: Return full role records instead of ids

        Returns:
            Resolution of roles
        """
        role_set = await self._user_role_set(user)
        roles = role_set.union()
        items = roles if populate else [_get(role, "id") for role in roles]
        return Resolution(items=items, diagnostics=role_set.diagnostics)

    async def get_effective_permissions(self, user, populate: bool = True) -> Resolution:
        """
        Permissions of every effective role of a user, deduplicated by id.

        Args:
            user: User record (ORM object or lean dict)
            populate: Return full permission records instead of ids

        Returns:
            Resolution of permissions
        """
        role_set = await self._user_role_set(user)
        items = await self._permissions_of(role_set.union(), populate)
        return Resolution(items=items, diagnostics=role_set.diagnostics)

    async def get_permissions(self, role, populate: bool = True) -> Resolution:
        """
        Permissions of a role on its own: its own plus those it inherits.

        Args:
            role: Role record (ORM object or lean dict)
            populate: Return full permission records instead of ids

        Returns:
            Resolution of permissions
        """
        role_set = await self._collect_roles([role])
        items = await self._permissions_of(role_set.union(), populate)
        return Resolution(items=items, diagnostics=role_set.diagnostics)

    async def resolve_user(self, user) -> ResolvedUser:
        """Build the authorization view of a user from one traversal."""
        role_set = await self._user_role_set(user)
        roles = role_set.union()
        permissions = await self._permissions_of(roles, populate=True)
        return ResolvedUser(
            user=user,
            permissions=permissions,
            roles=roles,
            diagnostics=list(role_set.diagnostics),
        )

    async def resolve_users(self, users: Sequence[Any]) -> List[ResolvedUser]:
        """Resolve several independent users concurrently."""
        return list(await asyncio.gather(*(self.resolve_user(user) for user in users)))
