"""Authorization decisions over a resolved permission set.

``PermissionChecker`` groups permissions by name once, so build one per
evaluation context (a request, a template render) and call ``can`` as
often as needed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from rolegraph.core.rbac.permissions import Operation


def _get(record, name: str, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _operation_value(operation: Union[str, Operation, None]) -> Optional[str]:
    if isinstance(operation, Operation):
        return operation.value
    return operation


class PermissionChecker:
    """Answers "can X on Y?" for one set of effective permissions."""

    def __init__(self, permissions: Iterable[Any]):
        """
        Initialize with the effective permission records.

        Args:
            permissions: Permission records (ORM objects or dicts) carrying
                ``name`` and ``operation``
        """
        grouped: Dict[str, Set[str]] = {}
        for permission in permissions or ():
            name = _get(permission, "name")
            if name is None:
                continue
            grouped.setdefault(name, set()).add(_operation_value(_get(permission, "operation")))
        self._grouped = grouped

    def can(self, operation: Union[str, Operation], permission_name: str) -> bool:
        """Check if the set holds ``operation`` on ``permission_name``.

        Unknown names, empty operations and non-matches all return False.
        """
        operation = _operation_value(operation)
        if not operation or not permission_name:
            return False
        return operation in self._grouped.get(permission_name, ())

    def can_any(self, checks: Iterable[Tuple[Union[str, Operation], str]]) -> bool:
        """Check if any ``(operation, permission_name)`` pair is allowed."""
        return any(self.can(operation, name) for operation, name in checks)

    def can_all(self, checks: Iterable[Tuple[Union[str, Operation], str]]) -> bool:
        """Check if every ``(operation, permission_name)`` pair is allowed."""
        return all(self.can(operation, name) for operation, name in checks)

    def operations_for(self, permission_name: str) -> Set[str]:
        """Operations held on a permission name."""
        return set(self._grouped.get(permission_name, ()))

    @property
    def permission_names(self) -> List[str]:
        return sorted(self._grouped)


@dataclass
class ResolvedUser:
    """A user together with their effective permissions and roles.

    This is the object handed to consumers (web guards, templates) that
    only need to ask ``can``.
    """

    user: Any
    permissions: List[Any] = field(default_factory=list)
    roles: List[Any] = field(default_factory=list)
    diagnostics: List[Any] = field(default_factory=list)

    def __post_init__(self):
        self._checker = PermissionChecker(self.permissions)
        self._role_names = {_get(role, "name") for role in self.roles}

    @property
    def id(self) -> str:
        return _get(self.user, "id")

    @property
    def user_name(self) -> str:
        return _get(self.user, "user_name")

    @property
    def checker(self) -> PermissionChecker:
        return self._checker

    def can(self, operation: Union[str, Operation], permission_name: str) -> bool:
        return self._checker.can(operation, permission_name)

    def has_role(self, role_name: str) -> bool:
        """Check if the user holds a role directly or through inheritance."""
        return bool(role_name) and role_name in self._role_names

    def to_dict(self) -> Dict[str, Any]:
        """Plain data: the user record with effective permissions and roles."""
        data = self.user.to_dict() if hasattr(self.user, "to_dict") else dict(self.user)
        data["permissions"] = [_as_dict(p) for p in self.permissions]
        data["roles"] = [_as_dict(r) for r in self.roles]
        return data


def _as_dict(record) -> Dict[str, Any]:
    return record.to_dict() if hasattr(record, "to_dict") else dict(record)


def can(permissions: Iterable[Any], operation: Union[str, Operation], permission_name: str) -> bool:
    """One-off decision without keeping a checker around."""
    return PermissionChecker(permissions).can(operation, permission_name)
