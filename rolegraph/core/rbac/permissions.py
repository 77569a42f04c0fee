"""Permission vocabulary for rolegraph.

A permission is a named capability scoped by an operation.

Namespace format: "name:operation"
Lookup token format: "name" (every operation) or "name.operation"
Examples:
  - invoice:read
  - invoice:scan
  - reports:none
"""

from enum import Enum
from typing import Iterable, NamedTuple, Optional, Set


class Operation(str, Enum):
    """Closed set of operations a permission can be scoped by."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    SCAN = "scan"
    NONE = "none"


OPERATION_VALUES = frozenset(op.value for op in Operation)


class PermissionKey(NamedTuple):
    """Identifying pair of a permission record."""
    name: str
    operation: Operation

    def __str__(self) -> str:
        return namespace(self.name, self.operation)

    @property
    def token(self) -> str:
        """The ``name.operation`` form accepted by the identifier resolver."""
        return f"{self.name}.{_value(self.operation)}"

    @classmethod
    def from_namespace(cls, value: str) -> "PermissionKey":
        """Parse a namespace string like 'invoice:read'."""
        name, sep, operation = value.rpartition(":")
        if not sep or not name:
            raise ValueError(f"Invalid permission namespace: {value}")
        return cls(name, Operation(operation))


def _value(operation) -> str:
    return operation.value if isinstance(operation, Operation) else str(operation)


def namespace(name: str, operation) -> str:
    """Build the ``name:operation`` namespace of a permission."""
    return f"{name}:{_value(operation)}"


def is_valid_operation(operation: Optional[str]) -> bool:
    """Check if a string names one of the known operations."""
    return operation in OPERATION_VALUES


def split_token(token: str) -> tuple[str, Optional[str]]:
    """Split a lookup token into ``(name, operation)``.

    The operation is taken from the last dot, and only when it names a known
    operation, so permission names may themselves contain dots::

        split_token("invoice")               # ("invoice", None)
        split_token("invoice.read")          # ("invoice", "read")
        split_token("billing.invoice")       # ("billing.invoice", None)
        split_token("billing.invoice.scan")  # ("billing.invoice", "scan")
    """
    head, sep, tail = token.rpartition(".")
    if sep and head and tail in OPERATION_VALUES:
        return head, tail
    return token, None


def candidate_names(tokens: Iterable[str]) -> Set[str]:
    """Every permission name a list of lookup tokens may refer to.

    A token is both tried as a bare name and, when it ends in an operation,
    as ``name.operation``.
    """
    names: Set[str] = set()
    for token in tokens:
        names.add(token)
        name, operation = split_token(token)
        if operation is not None:
            names.add(name)
    return names
