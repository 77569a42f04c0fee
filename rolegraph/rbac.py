"""The RBAC handle returned by ``rolegraph.init()``."""

from typing import Any, Dict, Optional

from rolegraph.core.config import (
    CollectionNames,
    SchemaExtensions,
    Settings,
    get_settings,
    parse_collection_names,
    parse_schema_extensions,
)
from rolegraph.core.rbac.graph import GraphResolver
from rolegraph.core.rbac.loader import BulkLoader, ImportResult
from rolegraph.core.rbac.resolver import IdentifierResolver
from rolegraph.db.models import ModelSet, build_models
from rolegraph.db.session import create_engine
from rolegraph.db.store import EntityStore
from rolegraph.services.permissions import PermissionManager
from rolegraph.services.roles import RoleManager
from rolegraph.services.users import UserManager


class RBAC:
    """
    One RBAC instance: its models, store and managers.

    Attributes:
        permission: PermissionManager
        role: RoleManager
        user: UserManager
        models: ModelSet with the Permission, Role and User models
        store: EntityStore the managers share
    """

    def __init__(
        self,
        store: EntityStore,
        *,
        collections: CollectionNames,
        extensions: SchemaExtensions,
        settings: Settings,
    ):
        self.store = store
        self.models: ModelSet = store.models
        self.collections = collections
        self.extensions = extensions
        self.settings = settings

        self.resolver = IdentifierResolver(store)
        self.graph = GraphResolver(store, max_depth=settings.max_inherit_depth)

        self.permission = PermissionManager(store, extensions.permission)
        self.role = RoleManager(store, self.resolver, self.graph, extensions.role)
        self.user = UserManager(store, self.resolver, self.graph, extensions.user)
        self.loader = BulkLoader(
            self.permission,
            self.role,
            self.user,
            concurrency=settings.import_concurrency,
        )

    async def create_schema(self) -> None:
        await self.store.create_schema()

    async def close(self) -> None:
        await self.store.dispose()

    async def import_data(self, permissions=None, roles=None, users=None) -> ImportResult:
        return await self.loader.import_data(permissions, roles, users)

    async def __aenter__(self) -> "RBAC":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def init(
    collections: Optional[Dict[str, str]] = None,
    options: Optional[Dict[str, Any]] = None,
    *,
    settings: Optional[Settings] = None,
    engine=None,
) -> RBAC:
    """
    Build an RBAC instance.

    Args:
        collections: Alternate table names (``permission``, ``role``, ``user``)
        options: ``{"extend_schemas": {kind: {field: {"required": bool, "default": ...}}}}``
        settings: Settings to use instead of the environment
        engine: Existing async engine to share instead of creating one

    Returns:
        RBAC instance; call ``await rbac.create_schema()`` on a fresh database
    """
    settings = settings or get_settings()
    options = options or {}
    names = parse_collection_names(collections, settings)
    extensions = parse_schema_extensions(options.get("extend_schemas"))

    store = EntityStore(engine or create_engine(settings), build_models(names))
    return RBAC(store, collections=names, extensions=extensions, settings=settings)
