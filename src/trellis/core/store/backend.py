"""
Project/task store protocols and registry.

This module defines the async ProjectStore and TaskStore protocols that
every storage backend implements, the filter objects they accept, and a
small registry so the configured backend can be selected by name.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from trellis.core.projects.models import Project
from trellis.core.tasks.models import StatusCount, Task, TaskStatus

if TYPE_CHECKING:
    from trellis.core.config.models import TrellisConfig


@dataclass(frozen=True)
class ProjectFilter:
    """
    Filter for ProjectStore.find_all.

    With ``visible_to`` unset the filter is unfiltered and matches every
    project. With ``visible_to`` set, a project matches when ANY of these
    holds: the user owns it, the user is a member, or it is public.
    A project satisfying several clauses is still returned once.
    """

    visible_to: str | None = None

    @property
    def is_unfiltered(self) -> bool:
        return self.visible_to is None

    def matches(self, project: Project) -> bool:
        if self.visible_to is None:
            return True
        return project.is_visible_to(self.visible_to)


@dataclass(frozen=True)
class TaskFilter:
    """
    Filter for TaskStore.find_all.

    All set criteria must hold. ``project_ids`` of None means any project;
    an empty tuple matches nothing. Time bounds are inclusive.
    """

    project_ids: tuple[str, ...] | None = None
    status: TaskStatus | None = None
    created_after: datetime | None = None
    updated_after: datetime | None = None

    @classmethod
    def for_projects(cls, project_ids: Iterable[str], **kwargs: object) -> "TaskFilter":
        return cls(project_ids=tuple(project_ids), **kwargs)  # type: ignore[arg-type]

    def matches(self, task: Task) -> bool:
        if self.project_ids is not None and task.project_id not in self.project_ids:
            return False
        if self.status is not None and task.status != self.status:
            return False
        if self.created_after is not None and (
            task.created_at is None or task.created_at < self.created_after
        ):
            return False
        if self.updated_after is not None and (
            task.updated_at is None or task.updated_at < self.updated_after
        ):
            return False
        return True


@runtime_checkable
class ProjectStore(Protocol):
    """
    Protocol for project storage.

    Read methods are what the dashboard core consumes; write methods exist
    for seeding, the CLI and tests. Backend failures are raised as
    StoreError and never retried here.
    """

    async def find_all(self, project_filter: ProjectFilter | None = None) -> list[Project]:
        """
        List projects matching a filter.

        Args:
            project_filter: Filter to apply (None or ProjectFilter() for all)

        Returns:
            Matching projects, each at most once
        """
        ...

    async def get(self, project_id: str) -> Project | None:
        """Get a project by id, or None if it does not exist."""
        ...

    async def save(self, project: Project) -> Project:
        """Insert or replace a project."""
        ...

    async def delete(self, project_id: str) -> bool:
        """Delete a project. Returns True if it existed."""
        ...


@runtime_checkable
class TaskStore(Protocol):
    """Protocol for task storage."""

    async def find_all(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """
        List tasks matching a filter.

        Args:
            task_filter: Filter to apply (None for all tasks)

        Returns:
            Matching tasks
        """
        ...

    async def get_aggregated_status_counts(
        self, project_ids: Iterable[str]
    ) -> list[StatusCount]:
        """
        Count tasks per status across a set of projects.

        Statuses with no tasks may be omitted from the result.

        Args:
            project_ids: Projects to count over

        Returns:
            One row per status present
        """
        ...

    async def get(self, task_id: str) -> Task | None:
        """Get a task by id, or None if it does not exist."""
        ...

    async def save(self, task: Task) -> Task:
        """Insert or replace a task."""
        ...

    async def delete(self, task_id: str) -> bool:
        """Delete a task. Returns True if it existed."""
        ...


@dataclass
class Stores:
    """A matched pair of project and task stores sharing one backend."""

    projects: ProjectStore
    tasks: TaskStore


StoreFactory = Callable[["TrellisConfig"], Stores]

# Backend registry
_backends: dict[str, StoreFactory] = {}


def register_store(name: str) -> Callable[[StoreFactory], StoreFactory]:
    """
    Decorator to register a store backend factory.

    Usage:
        @register_store("memory")
        def create_memory_stores(config: TrellisConfig) -> Stores:
            ...

    Args:
        name: Backend name (e.g., 'memory', 'sqlite')

    Returns:
        Decorator function
    """

    def decorator(factory: StoreFactory) -> StoreFactory:
        _backends[name] = factory
        return factory

    return decorator


def get_stores(config: "TrellisConfig") -> Stores:
    """
    Build the stores for the configured backend.

    Args:
        config: Loaded configuration (uses ``config.store.backend``)

    Returns:
        Stores instance

    Raises:
        ValueError: If the backend name is not registered
    """
    name = config.store.backend
    factory = _backends.get(name)
    if factory is None:
        raise ValueError(
            f"Store backend '{name}' not registered. "
            f"Available backends: {', '.join(_backends.keys())}"
        )
    return factory(config)


def list_stores() -> list[str]:
    """List all registered store backend names."""
    return list(_backends.keys())
