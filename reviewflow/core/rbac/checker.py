"""Permission checks for review workflow endpoints."""

import inspect
from functools import wraps
from typing import Callable, FrozenSet, Iterable, Union

from fastapi import HTTPException, status

from .permissions import Permission

PermissionLike = Union[str, Permission]


def _grants_for(permission: str) -> FrozenSet[str]:
    """Every grant string that satisfies ``permission``."""
    resource, _, _ = permission.partition(":")
    return frozenset({permission, f"{resource}:*", "*:*"})


class PermissionChecker:
    """Answers permission questions for one set of role grants."""

    def __init__(self, user_permissions: Iterable[str]):
        self.permissions = frozenset(user_permissions)

    @classmethod
    def for_user(cls, user) -> "PermissionChecker":
        role = getattr(user, "role", None) if user else None
        return cls((role.permissions or []) if role else [])

    def has_permission(self, permission: PermissionLike) -> bool:
        """True if granted directly or through ``reviews:*`` / ``*:*``."""
        return not self.permissions.isdisjoint(_grants_for(str(permission)))

    def has_any_permission(self, permissions: Iterable[PermissionLike]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: Iterable[PermissionLike]) -> bool:
        return all(self.has_permission(p) for p in permissions)


def has_permission(user, permission: PermissionLike) -> bool:
    return PermissionChecker.for_user(user).has_permission(permission)


def require_permission(*permissions: PermissionLike, require_all: bool = False):
    """
    Guard an endpoint, async or plain, with one or more permissions.

    The endpoint must receive ``current_user`` as a keyword argument, which
    ``Depends(get_current_user)`` provides. By default any one of
    ``permissions`` suffices; ``require_all=True`` demands every one.

    Usage:
        @router.post("/assign")
        @require_permission(REVIEWS_ASSIGN)
        async def assign(..., current_user: User = Depends(get_current_user)):
            ...
    """
    required = [str(p) for p in permissions]

    def check(current_user) -> None:
        if not current_user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
            )
        if not current_user.role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User has no assigned role",
            )

        checker = PermissionChecker.for_user(current_user)
        allowed = (
            checker.has_all_permissions(required)
            if require_all
            else checker.has_any_permission(required)
        )
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(required)}",
            )

    def decorator(func: Callable):
        # Plain ``def`` endpoints stay plain so FastAPI runs them in its threadpool
        if not inspect.iscoroutinefunction(func):
            @wraps(func)
            def sync_wrapper(*args, **kwargs):
                check(kwargs.get("current_user"))
                return func(*args, **kwargs)

            return sync_wrapper

        @wraps(func)
        async def wrapper(*args, **kwargs):
            check(kwargs.get("current_user"))
            return await func(*args, **kwargs)

        return wrapper
    return decorator
