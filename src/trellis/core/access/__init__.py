"""Caller roles and access scope resolution."""

from .models import AccessScope, Caller, CallerRole
from .scope import (
    SCOPE_STRATEGIES,
    AdminScopeStrategy,
    MemberScopeStrategy,
    resolve_caller_scope,
    resolve_scope,
)

__all__ = [
    "AccessScope",
    "Caller",
    "CallerRole",
    "SCOPE_STRATEGIES",
    "AdminScopeStrategy",
    "MemberScopeStrategy",
    "resolve_caller_scope",
    "resolve_scope",
]
