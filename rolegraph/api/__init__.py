"""Web framework integration."""

from .guards import PermissionDependency, ResolveUser, require_permission

__all__ = ["PermissionDependency", "ResolveUser", "require_permission"]
