"""Entity managers for permissions, roles and users."""

from .permissions import PermissionManager
from .roles import RoleManager
from .users import UserManager

__all__ = ["PermissionManager", "RoleManager", "UserManager"]
