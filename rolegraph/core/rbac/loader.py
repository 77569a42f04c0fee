"""Bulk import of permissions, roles and users.

Three phases run strictly in order (permissions, roles, users) so every
name a role or user refers to can be resolved against records committed
by the previous phase. Items inside a phase are created concurrently.

The first failing item aborts the import: its error propagates unchanged
and the rest of that phase is cancelled. Items already committed stay
committed; there is no rollback.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Type

import pydantic

from rolegraph.core.config import load_seed_document
from rolegraph.core.exceptions import ValidationError
from rolegraph.core.logger import get_logger
from rolegraph.core.rbac.schemas import ImportDocument, PermissionSpec, RoleSpec, UserSpec

logger = get_logger("loader")


@dataclass
class ImportResult:
    """Records created (or found) by each phase, in input order."""

    permissions: list = field(default_factory=list)
    roles: list = field(default_factory=list)
    users: list = field(default_factory=list)


class BulkLoader:
    """Dependency-ordered creation of permissions, roles and users."""

    def __init__(self, permissions, roles, users, concurrency: int = 10):
        """
        Args:
            permissions: PermissionManager
            roles: RoleManager
            users: UserManager
            concurrency: Maximum items in flight within one phase
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.permissions = permissions
        self.roles = roles
        self.users = users
        self.concurrency = concurrency

    async def _run_phase(
        self,
        phase: str,
        items: Sequence[Any],
        add: Callable[[Any], Awaitable[Any]],
    ) -> list:
        if not items:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _one(item):
            async with semaphore:
                return await add(item)

        tasks = [asyncio.ensure_future(_one(item)) for item in items]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Let cancelled tasks unwind before surfacing the error
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error(f"Import aborted during {phase} phase")
            raise

        logger.info(f"Imported {len(results)} {phase}")
        return list(results)

    async def import_data(
        self,
        permissions: Optional[Sequence[Any]] = None,
        roles: Optional[Sequence[Any]] = None,
        users: Optional[Sequence[Any]] = None,
    ) -> ImportResult:
        """
        Import the three batches in dependency order.

        Plain dict descriptors are validated against ``PermissionSpec``,
        ``RoleSpec`` and ``UserSpec`` first, so both field names and their
        aliases (``permission``, ``displayName``, ``inheritRoles``,
        ``userName``) are accepted. Every batch is validated before the
        first write.

        Args:
            permissions: Permission descriptors
            roles: Role descriptors; ``permissions`` and ``inherit_roles``
                are names, resolved after the permission phase
            users: User descriptors; ``roles`` are names, resolved after
                the role phase

        Returns:
            ImportResult with the records of each phase

        Raises:
            ValidationError: If a descriptor doesn't have the expected shape
        """
        permissions = _validate_batch("permission", PermissionSpec, permissions)
        roles = _validate_batch("role", RoleSpec, roles)
        users = _validate_batch("user", UserSpec, users)

        result = ImportResult()
        result.permissions = await self._run_phase("permissions", permissions, self.permissions.add)
        result.roles = await self._run_phase("roles", roles, self.roles.add)
        result.users = await self._run_phase("users", users, self.users.add)
        return result

    async def import_document(self, document: ImportDocument) -> ImportResult:
        return await self.import_data(document.permissions, document.roles, document.users)

    async def import_file(self, path: str) -> ImportResult:
        """Import a YAML seed file (see ``load_import_file``)."""
        return await self.import_document(load_import_file(path))


def load_import_file(path: str) -> ImportDocument:
    """
    Read a YAML seed file with ``permissions``, ``roles`` and ``users`` lists.

    Args:
        path: Path to the YAML file

    Returns:
        Validated ImportDocument

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the document doesn't have the expected shape
    """
    raw = load_seed_document(path)
    try:
        return ImportDocument.model_validate(raw)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid import file {path}: {e}") from e



def _validate_batch(kind: str, schema: Type[pydantic.BaseModel], items: Optional[Sequence[Any]]) -> List[Any]:
    """Validate dict descriptors against ``schema``; models pass through."""
    batch = []
    for index, item in enumerate(items or []):
        if isinstance(item, dict):
            try:
                item = schema.model_validate(item)
            except pydantic.ValidationError as e:
                raise ValidationError(
                    f"Invalid {kind} descriptor at position {index}: {e}", operation="import"
                ) from e
        batch.append(item)
    return batch
