"""RBAC resolution core: identifiers, inheritance graph, decisions, bulk import."""

from .permissions import Operation, PermissionKey, namespace
from .checker import PermissionChecker, ResolvedUser, can
from .graph import Diagnostic, GraphResolver, Resolution
from .resolver import IdentifierResolver
from .loader import BulkLoader, ImportResult, load_import_file

__all__ = [
    "BulkLoader",
    "Diagnostic",
    "GraphResolver",
    "IdentifierResolver",
    "ImportResult",
    "Operation",
    "PermissionChecker",
    "PermissionKey",
    "Resolution",
    "ResolvedUser",
    "can",
    "load_import_file",
    "namespace",
]
