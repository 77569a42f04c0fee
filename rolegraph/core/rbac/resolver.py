"""Identifier resolution for rolegraph.

Translates human-readable role names and permission lookup tokens into
store identifiers, one batched query per call.
"""

from typing import List, Sequence

from rolegraph.core.logger import get_logger
from rolegraph.core.rbac.permissions import candidate_names

logger = get_logger("resolver")


class IdentifierResolver:
    """Batch name → id translation against an entity store.

    Names that match nothing are dropped from the result without error.
    Callers that care must compare counts themselves.
    """

    def __init__(self, store):
        self.store = store

    async def resolve_role_ids(self, names: Sequence[str]) -> List[str]:
        """
        Resolve role names to role ids.

        Args:
            names: Exact role names

        Returns:
            Ids of the roles found, unmatched names omitted
        """
        names = list(dict.fromkeys(names or []))
        if not names:
            return []
        role_ids = await self.store.role_ids_by_names(names)
        if len(role_ids) < len(names):
            logger.debug(f"Resolved {len(role_ids)} of {len(names)} role names")
        return role_ids

    async def resolve_permission_ids(self, names: Sequence[str]) -> List[str]:
        """
        Resolve permission lookup tokens to permission ids.

        A bare ``name`` matches every operation stored under that name; a
        ``name.operation`` token matches that variant only. One token may
        therefore expand to several ids.

        Args:
            names: Lookup tokens

        Returns:
            Ids of the matching permissions, one per (name, operation)
        """
        tokens = set(names or [])
        if not tokens:
            return []

        groups = await self.store.permission_groups(candidate_names(tokens))

        permission_ids = []
        for group in groups:
            dotted = f"{group.name}.{group.operation}"
            if group.name in tokens or dotted in tokens:
                permission_ids.append(group.id)
        return permission_ids
