"""
Explicit user scope handle.

Every storage-touching operation receives a ``UserScope`` instead of
reading a globally set "current user". A missing scope is a programming
error and fails immediately (no silent cross-user data bleed).
"""

from __future__ import annotations

from dataclasses import dataclass

from sales_kernel.exceptions import ScopeRequiredError


@dataclass(frozen=True, slots=True)
class UserScope:
    """The signed-in user whose persisted domains an operation touches."""

    user_id: str


def require_scope(scope: UserScope | None, operation: str) -> UserScope:
    """Return ``scope`` or raise ``ScopeRequiredError`` when absent/blank."""
    if scope is None or not scope.user_id or not scope.user_id.strip():
        raise ScopeRequiredError(operation)
    return scope
