"""
Dashboard cache invalidation.

Maps project, task and membership mutations to the cache patterns they
make stale. Mutation handlers call these after a successful write; the
cached aggregates otherwise stay stale for up to their TTL.

Key layout is ``dashboard:<query>:<caller_id>:<role>``, so a caller's
entries match ``dashboard:*:<caller_id>:*`` and every admin entry matches
``dashboard:*:*:admin``. Caller ids are escaped before they go into a
pattern, so an id such as ``team[1]`` or ``*`` matches only itself.
"""

import logging
from collections.abc import Iterable

from trellis.core.access.models import CallerRole
from trellis.core.cache.gateway import KEY_NAMESPACE, CacheAside
from trellis.core.projects.models import Project

logger = logging.getLogger(__name__)

ALL_DASHBOARD_KEYS = f"{KEY_NAMESPACE}:*"
ADMIN_KEYS = f"{KEY_NAMESPACE}:*:*:{CallerRole.ADMIN.value}"


class DashboardInvalidator:
    """
    Invalidates cached dashboard aggregates after mutations.

    Args:
        gateway: Cache gateway the dashboard service reads through
    """

    def __init__(self, gateway: CacheAside) -> None:
        self.gateway = gateway

    def user_pattern(self, user_id: str) -> str:
        """Pattern matching every cached aggregate for one caller."""
        return f"{KEY_NAMESPACE}:*:{self.gateway.escape(user_id)}:*"

    def patterns_for_project(
        self, project: Project, extra_user_ids: Iterable[str] = ()
    ) -> list[str]:
        """
        Compute the patterns a change to ``project`` makes stale.

        A public project is in every caller's scope, so everything goes.
        Otherwise only its participants, any extra users, and admins.
        """
        if project.is_public():
            return [ALL_DASHBOARD_KEYS]
        user_ids = project.participants()
        for user_id in extra_user_ids:
            if user_id not in user_ids:
                user_ids.append(user_id)
        return [self.user_pattern(uid) for uid in user_ids] + [ADMIN_KEYS]

    async def task_changed(self, project: Project) -> int:
        """A task in ``project`` was created, updated or deleted."""
        return await self._invalidate(self.patterns_for_project(project))

    async def project_changed(self, project: Project, previous: Project | None = None) -> int:
        """
        ``project`` was created, updated or deleted.

        Args:
            project: Project after the change
            previous: Project before the change, when it existed; its
                participants lose access on an ownership or member change
        """
        if previous is None:
            return await self._invalidate(self.patterns_for_project(project))
        if previous.is_public():
            return await self._invalidate([ALL_DASHBOARD_KEYS])
        return await self._invalidate(
            self.patterns_for_project(project, previous.participants())
        )

    async def membership_changed(self, project: Project, user_ids: Iterable[str]) -> int:
        """
        Members were added to or removed from ``project``.

        Args:
            project: Project after the change
            user_ids: Users added or removed; removed users are no longer
                participants but still hold stale entries
        """
        return await self._invalidate(self.patterns_for_project(project, user_ids))

    async def visibility_changed(self, project: Project) -> int:
        """``project`` visibility changed; any caller may gain or lose it."""
        return await self._invalidate([ALL_DASHBOARD_KEYS])

    async def user_changed(self, user_id: str) -> int:
        """A user's role or status changed."""
        return await self._invalidate([self.user_pattern(user_id)])

    async def clear_all(self) -> int:
        return await self._invalidate([ALL_DASHBOARD_KEYS])

    async def _invalidate(self, patterns: list[str]) -> int:
        removed = 0
        for pattern in patterns:
            removed += await self.gateway.invalidate_pattern(pattern)
        logger.info("Invalidated %d dashboard cache entries (%s)", removed, ", ".join(patterns))
        return removed
