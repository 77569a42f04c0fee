"""Exceptions raised by rolegraph.

Store failures are not wrapped: SQLAlchemy errors reach the caller as-is.
"""

from typing import Optional


class RBACError(Exception):
    """Base class for rolegraph errors."""


class ValidationError(RBACError):
    """Raised when a required field or argument is missing or invalid.

    Always raised before any store access.
    """

    def __init__(self, message: str, *, operation: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.field = field


class NotFoundError(RBACError):
    """Raised when a user lookup finds nothing."""

    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind.capitalize()} {key} could not be found.")
        self.kind = kind
        self.key = key


def required_error(kind: str, operation: str, field: str) -> ValidationError:
    """Build the error for a missing required field of a manager call."""
    return ValidationError(
        f'Error when using "{operation}" method in "{kind.capitalize()}" object: '
        f"{field} is required.",
        operation=operation,
        field=field,
    )
