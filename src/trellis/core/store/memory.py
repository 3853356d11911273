"""
In-memory store backend.

Keeps projects and tasks in insertion-ordered dicts. Used by tests, by
`trellis serve` when no database is configured, and as the reference
behaviour the SQLite backend is checked against.
"""

from collections import Counter
from collections.abc import Iterable
from typing import TYPE_CHECKING

from trellis.core.projects.models import Project
from trellis.core.store.backend import ProjectFilter, Stores, TaskFilter, register_store
from trellis.core.tasks.models import StatusCount, Task

if TYPE_CHECKING:
    from trellis.core.config.models import TrellisConfig


class MemoryProjectStore:
    """Dict-backed ProjectStore."""

    def __init__(self, projects: Iterable[Project] = ()) -> None:
        self._projects: dict[str, Project] = {p.id: p for p in projects}

    async def find_all(self, project_filter: ProjectFilter | None = None) -> list[Project]:
        project_filter = project_filter or ProjectFilter()
        return [
            p.model_copy(deep=True)
            for p in self._projects.values()
            if project_filter.matches(p)
        ]

    async def get(self, project_id: str) -> Project | None:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project else None

    async def save(self, project: Project) -> Project:
        self._projects[project.id] = project.model_copy(deep=True)
        return project

    async def delete(self, project_id: str) -> bool:
        return self._projects.pop(project_id, None) is not None


class MemoryTaskStore:
    """Dict-backed TaskStore."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {t.id: t for t in tasks}

    async def find_all(self, task_filter: TaskFilter | None = None) -> list[Task]:
        task_filter = task_filter or TaskFilter()
        return [t.model_copy() for t in self._tasks.values() if task_filter.matches(t)]

    async def get_aggregated_status_counts(
        self, project_ids: Iterable[str]
    ) -> list[StatusCount]:
        wanted = set(project_ids)
        counts = Counter(t.status.value for t in self._tasks.values() if t.project_id in wanted)
        return [StatusCount(status=status, count=count) for status, count in counts.items()]

    async def get(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy() if task else None

    async def save(self, task: Task) -> Task:
        self._tasks[task.id] = task.model_copy()
        return task

    async def delete(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None


@register_store("memory")
def create_memory_stores(config: "TrellisConfig") -> Stores:
    """Create an empty pair of in-memory stores."""
    return Stores(projects=MemoryProjectStore(), tasks=MemoryTaskStore())
