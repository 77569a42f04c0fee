"""rolegraph - role-based access control resolution.

Resolves a user's effective roles and permissions across one level of
role inheritance and answers "can this user do X on Y?".
"""

from rolegraph.core.exceptions import NotFoundError, RBACError, ValidationError
from rolegraph.core.rbac.checker import PermissionChecker, ResolvedUser
from rolegraph.core.rbac.permissions import Operation
from rolegraph.rbac import RBAC, init

__version__ = "0.1.0"

__all__ = [
    "NotFoundError",
    "Operation",
    "PermissionChecker",
    "RBAC",
    "RBACError",
    "ResolvedUser",
    "ValidationError",
    "init",
]
