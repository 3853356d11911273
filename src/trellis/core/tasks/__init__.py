"""
Task models.

Provides the Task model together with its status and priority enums.
Storage lives in trellis.core.store.
"""

from .models import StatusCount, Task, TaskPriority, TaskStatus

__all__ = [
    "StatusCount",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
