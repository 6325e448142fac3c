"""
Access Scope

Single authorization boundary for store-level data. Every read or write that
names stores passes through ``effective_stores`` or ``ensure_store_access``.

- executive / bookkeeper: unrestricted
- manager: restricted to assigned stores for both read and write
"""

from typing import FrozenSet, Iterable, Optional
from dataclasses import dataclass, field
from enum import Enum

from app.core.exceptions import Forbidden


class Role(str, Enum):
    EXECUTIVE = "executive"
    BOOKKEEPER = "bookkeeper"
    MANAGER = "manager"


UNRESTRICTED_ROLES = {Role.EXECUTIVE, Role.BOOKKEEPER}


@dataclass(frozen=True)
class Principal:
    """Authenticated caller supplied by the auth layer."""
    id: int
    role: Role
    assigned_stores: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_unrestricted(self) -> bool:
        return self.role in UNRESTRICTED_ROLES


def effective_stores(
    principal: Principal,
    requested: Optional[Iterable[str]] = None,
) -> Optional[FrozenSet[str]]:
    """
    Store codes the principal may access for this request.

    Returns None for "all stores". An empty frozenset means nothing is
    visible and callers must return empty results, not everything.
    """
    requested_set = frozenset(code for code in (requested or []) if code)

    if principal.is_unrestricted:
        return requested_set or None

    if not requested_set:
        return frozenset(principal.assigned_stores)
    return requested_set & frozenset(principal.assigned_stores)


def ensure_store_access(principal: Principal, store_code: str) -> None:
    """Raise Forbidden unless the principal may read or write ``store_code``."""
    allowed = effective_stores(principal, [store_code])
    if allowed is not None and store_code not in allowed:
        raise Forbidden(
            f"Access denied to store {store_code}",
            details={"store_code": store_code},
        )
