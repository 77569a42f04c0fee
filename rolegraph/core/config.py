"""Configuration management for rolegraph.

Runtime settings come from the environment (``ROLEGRAPH_*``) via
pydantic-settings. Schema extensions and table names passed to ``init()``
are parsed into typed dataclasses. Seed documents for bulk import are
YAML files with environment variable expansion.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


ENTITY_KINDS = ("permission", "role", "user")


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./rolegraph.db"
    echo_sql: bool = False

    # Table names
    permission_table: str = "rbac_permissions"
    role_table: str = "rbac_roles"
    user_table: str = "rbac_users"

    # Resolution
    max_inherit_depth: int = 1

    # Bulk import
    import_concurrency: int = 10

    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"
    file_logging: bool = False

    model_config = SettingsConfigDict(
        env_prefix="ROLEGRAPH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


@dataclass(frozen=True)
class CollectionNames:
    """Table names for the three entity kinds."""

    permission: str = "rbac_permissions"
    role: str = "rbac_roles"
    user: str = "rbac_users"

    def for_kind(self, kind: str) -> str:
        return getattr(self, kind)


@dataclass(frozen=True)
class ExtensionField:
    """An extra field declared for an entity kind."""

    required: bool = False
    default: Any = None


@dataclass
class SchemaExtensions:
    """Extension fields per entity kind, stored in the record's ``extra`` column."""

    permission: Dict[str, ExtensionField] = field(default_factory=dict)
    role: Dict[str, ExtensionField] = field(default_factory=dict)
    user: Dict[str, ExtensionField] = field(default_factory=dict)

    def for_kind(self, kind: str) -> Dict[str, ExtensionField]:
        return getattr(self, kind)


def parse_collection_names(
    collections: Optional[Dict[str, str]],
    settings: Optional[Settings] = None,
) -> CollectionNames:
    """Merge caller supplied table names over the configured defaults.

    Args:
        collections: Mapping with optional ``permission``, ``role`` and
            ``user`` keys
        settings: Settings providing the defaults

    Returns:
        CollectionNames instance
    """
    settings = settings or get_settings()
    collections = collections or {}
    return CollectionNames(
        permission=collections.get("permission") or settings.permission_table,
        role=collections.get("role") or settings.role_table,
        user=collections.get("user") or settings.user_table,
    )


def parse_extension_field(value: Any) -> ExtensionField:
    """Parse one extension field declaration.

    Accepts an ``ExtensionField``, a mapping with ``required``/``default``
    keys, or ``None`` for an optional field without default.
    """
    if isinstance(value, ExtensionField):
        return value
    if value is None:
        return ExtensionField()
    if not isinstance(value, dict):
        raise TypeError(
            f"Extension field must be a mapping, got {type(value).__name__}"
        )
    return ExtensionField(
        required=bool(value.get("required", False)),
        default=value.get("default"),
    )


def parse_schema_extensions(extend_schemas: Optional[Dict[str, Any]]) -> SchemaExtensions:
    """Parse the ``extend_schemas`` option passed to ``init()``.

    Args:
        extend_schemas: Mapping of entity kind to field declarations

    Returns:
        SchemaExtensions instance

    Raises:
        ValueError: If an unknown entity kind is given
    """
    extensions = SchemaExtensions()
    for kind, fields in (extend_schemas or {}).items():
        if kind not in ENTITY_KINDS:
            raise ValueError(
                f"Unknown entity kind in extend_schemas: {kind}. "
                f"Must be one of: {', '.join(ENTITY_KINDS)}"
            )
        extensions.for_kind(kind).update(
            {name: parse_extension_field(decl) for name, decl in (fields or {}).items()}
        )
    return extensions


def load_seed_document(path: str) -> Dict[str, Any]:
    """Read a YAML seed document for bulk import.

    ``${VAR}`` references in string values are replaced from the
    environment, so one seed file can serve several tenants.

    Args:
        path: Path to the YAML file

    Returns:
        The document's top-level mapping (empty for an empty file)

    Raises:
        FileNotFoundError: If the file doesn't exist
        TypeError: If the top level is not a mapping
        yaml.YAMLError: If the file is invalid YAML
    """
    seed_file = Path(path)
    if not seed_file.is_file():
        raise FileNotFoundError(f"Seed document not found: {path}")

    with seed_file.open("r") as f:
        document = yaml.safe_load(f) or {}

    if not isinstance(document, dict):
        raise TypeError(f"Seed document must be a mapping at the top level, got {type(document).__name__}")
    return _substitute_env(document)


def _substitute_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_substitute_env(item) for item in value]
    if isinstance(value, dict):
        return {key: _substitute_env(item) for key, item in value.items()}
    return value
