"""FastAPI guards built on ``ResolvedUser.can``.

Authentication stays with the host application: it supplies a callable
that names the current user. These guards only resolve that user and check
permissions. Caller-contract problems (no user, a user object without
``can``, a guard without arguments) are answered here with 401/403 and
never reach the core.
"""

from functools import wraps
from typing import Callable, Optional, Sequence, Tuple, Union

from fastapi import HTTPException, Request, status

from rolegraph.core.exceptions import NotFoundError
from rolegraph.core.logger import get_logger
from rolegraph.core.rbac.checker import ResolvedUser
from rolegraph.core.rbac.permissions import Operation

logger = get_logger("api.guards")

Check = Tuple[Union[str, Operation], str]


def _evaluate(user, checks: Sequence[Check], require_all: bool) -> None:
    """Raise the HTTP error a guard should produce, or return if allowed."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    if not callable(getattr(user, "can", None)):
        logger.info("The user does not have the required method \"can\"")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User cannot be authorized"
        )

    results = (user.can(operation, name) for operation, name in checks)
    has_access = all(results) if require_all else any(results)

    if not has_access:
        required = ", ".join(f"{name}:{getattr(op, 'value', op)}" for op, name in checks)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required: {required}"
        )


def _validate_checks(checks: Sequence[Check]) -> None:
    if not checks:
        raise ValueError("At least one (operation, permission) pair is required")
    for operation, name in checks:
        if not operation:
            raise ValueError('Parameter "operation" is required')
        if not name:
            raise ValueError('Parameter "permission" is required')


class ResolveUser:
    """
    FastAPI dependency resolving the current user into a ``ResolvedUser``.

    The result is also stored on ``request.state.user`` for the guards.

    Usage:
        current_user = ResolveUser(rbac, identify=lambda request: request.headers.get("X-User"))

        @app.get("/invoices")
        async def list_invoices(user: ResolvedUser = Depends(current_user)):
            ...
    """

    def __init__(self, rbac, identify: Callable[[Request], Optional[str]]):
        self.rbac = rbac
        self.identify = identify

    async def __call__(self, request: Request) -> ResolvedUser:
        user_name = self.identify(request)
        if not user_name:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required"
            )
        try:
            user = await self.rbac.user.get(user_name)
        except NotFoundError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unknown user"
            )
        request.state.user = user
        return user


class PermissionDependency:
    """
    FastAPI dependency for permission checking against ``request.state.user``.

    Usage:
        @router.get(
            "/invoices",
            dependencies=[Depends(current_user), Depends(PermissionDependency(("read", "invoice")))],
        )
        async def list_invoices():
            ...
    """

    def __init__(self, *checks: Check, require_all: bool = False):
        _validate_checks(checks)
        self.checks = checks
        self.require_all = require_all

    async def __call__(self, request: Request) -> bool:
        _evaluate(getattr(request.state, "user", None), self.checks, self.require_all)
        return True


def require_permission(*checks: Check, require_all: bool = False):
    """
    Decorator for endpoints that receive the resolved user as ``current_user``.

    Args:
        checks: ``(operation, permission_name)`` pairs
        require_all: If True, every pair must be allowed. Default: any one.

    Usage:
        @router.delete("/invoices/{id}")
        @require_permission(("delete", "invoice"))
        async def delete_invoice(id: str, current_user: ResolvedUser = Depends(current_user)):
            ...
    """
    _validate_checks(checks)

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            _evaluate(kwargs.get("current_user"), checks, require_all)
            return await func(*args, **kwargs)

        return wrapper
    return decorator
