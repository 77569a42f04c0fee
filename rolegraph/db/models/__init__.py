"""Database models for rolegraph.

Models are built per RBAC instance so table names can be configured.
"""

from dataclasses import dataclass
from typing import Any

from rolegraph.core.config import CollectionNames
from rolegraph.db.base import make_base
from rolegraph.db.models.permission import build_permission_model
from rolegraph.db.models.role import build_role_model
from rolegraph.db.models.user import build_user_model


@dataclass(frozen=True)
class ModelSet:
    base: Any
    permission: Any
    role: Any
    user: Any

    @property
    def metadata(self):
        return self.base.metadata

    def for_kind(self, kind: str):
        try:
            return {"permission": self.permission, "role": self.role, "user": self.user}[kind]
        except KeyError:
            raise ValueError(f"Unknown entity kind: {kind}") from None


def build_models(collections: CollectionNames) -> ModelSet:
    """Create the Permission, Role and User models on a fresh metadata."""
    base = make_base()
    return ModelSet(
        base=base,
        permission=build_permission_model(base, collections.permission),
        role=build_role_model(base, collections.role),
        user=build_user_model(base, collections.user),
    )


__all__ = ["ModelSet", "build_models"]
