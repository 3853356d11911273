"""
Access scope resolution.

Turns a (caller id, role) pair into the set of projects that caller may
aggregate over. The role selects a strategy from a fixed table, so there
is exactly one place where admin and standard users are told apart.

Example:
    >>> scope = await resolve_scope("u-1", "user", project_store)
    >>> scope.project_ids
    ('p-1', 'p-7')
"""

import logging
from typing import Protocol

from trellis.core.access.models import AccessScope, Caller, CallerRole
from trellis.core.projects.models import Project
from trellis.core.store.backend import ProjectFilter, ProjectStore

logger = logging.getLogger(__name__)


class ScopeStrategy(Protocol):
    """Builds the project filter for one role."""

    def project_filter(self, caller: Caller) -> ProjectFilter: ...


class AdminScopeStrategy:
    """Admins see every project in the system."""

    def project_filter(self, caller: Caller) -> ProjectFilter:
        return ProjectFilter()


class MemberScopeStrategy:
    """Standard users see projects they own, belong to, or that are public."""

    def project_filter(self, caller: Caller) -> ProjectFilter:
        return ProjectFilter(visible_to=caller.id)


SCOPE_STRATEGIES: dict[CallerRole, ScopeStrategy] = {
    CallerRole.ADMIN: AdminScopeStrategy(),
    CallerRole.USER: MemberScopeStrategy(),
}


def _unique_by_id(projects: list[Project]) -> tuple[Project, ...]:
    seen: dict[str, Project] = {}
    for project in projects:
        seen.setdefault(project.id, project)
    return tuple(seen.values())


async def resolve_caller_scope(caller: Caller, project_store: ProjectStore) -> AccessScope:
    """
    Resolve the access scope for an already-built Caller.

    Args:
        caller: Authenticated caller
        project_store: Store to read projects from

    Returns:
        AccessScope with each visible project exactly once

    Raises:
        StoreError: Propagated unchanged from the store
    """
    strategy = SCOPE_STRATEGIES[caller.role]
    projects = await project_store.find_all(strategy.project_filter(caller))
    scope = AccessScope(caller=caller, projects=_unique_by_id(projects))
    logger.debug(
        "Resolved scope for %s (%s): %d projects", caller.id, caller.role.value, len(scope)
    )
    return scope


async def resolve_scope(
    caller_id: str,
    caller_role: str | CallerRole | None,
    project_store: ProjectStore,
) -> AccessScope:
    """
    Resolve the projects a caller may include in any aggregate.

    Args:
        caller_id: Authenticated user id
        caller_role: Upstream role value; anything but "admin" is a standard user
        project_store: Store to read projects from

    Returns:
        AccessScope for this caller at this instant
    """
    caller = Caller(id=caller_id, role=CallerRole.parse(caller_role))
    return await resolve_caller_scope(caller, project_store)
