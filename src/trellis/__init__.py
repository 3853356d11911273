"""
Trellis - project and task management backend

Serves role-aware dashboard analytics over projects and tasks, with a
cache-aside layer in front of the aggregation queries.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from trellis.core.projects.models import Project, ProjectStatus, ProjectVisibility
from trellis.core.tasks.models import Task, TaskPriority, TaskStatus

__all__ = [
    "Project",
    "ProjectStatus",
    "ProjectVisibility",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "__version__",
]
