"""
Task data models for trellis.

Defines the Task model and the status/priority enums shared by the stores,
the aggregation engine and the API layer. Tasks carry no access control of
their own: who may see a task is decided entirely by its parent project.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    """Task status values.

    Declaration order is the bucket order used by every distribution.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority levels, lowest first."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(BaseModel):
    """
    A task belonging to exactly one project.

    Example:
        >>> task = Task(id="t-1", title="Write docs", project_id="p-1")
        >>> task.status
        <TaskStatus.NOT_STARTED: 'not_started'>
        >>> task.priority
        <TaskPriority.NONE: 'none'>
    """

    id: str = Field(..., description="Unique task identifier")
    title: str = Field(default="", description="Task title")
    description: str = Field(default="", description="Task description")
    project_id: str = Field(..., description="Owning project identifier", alias="projectId")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="Current status")
    priority: TaskPriority = Field(default=TaskPriority.NONE, description="Priority level")
    assignee_id: str | None = Field(
        default=None, description="Assigned user identifier", alias="assigneeId"
    )
    due_date: datetime | None = Field(default=None, description="Due date", alias="dueDate")
    order: int = Field(default=0, description="Position within its status column")

    created_at: datetime | None = Field(
        default=None, description="When the task was created", alias="createdAt"
    )
    updated_at: datetime | None = Field(
        default=None,
        description="When the task was last modified (any field, not only status)",
        alias="updatedAt",
    )

    model_config = ConfigDict(
        populate_by_name=True,  # Allow both 'project_id' and 'projectId'
    )

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: str | TaskPriority | None) -> str | TaskPriority:
        """Treat a missing priority as NONE."""
        if v is None or v == "":
            return TaskPriority.NONE
        return v

    @field_validator("due_date", "created_at", "updated_at", mode="after")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are stored as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_overdue(self, now: datetime) -> bool:
        """
        Check whether the task is past due.

        A task is overdue when it has a due date strictly before ``now``
        and is not completed.

        Args:
            now: Reference instant (timezone-aware)

        Returns:
            True if the task is overdue
        """
        if self.due_date is None or self.is_completed():
            return False
        return self.due_date < now


class StatusCount(BaseModel):
    """One row of a grouped status count, as returned by task stores."""

    status: str = Field(..., description="Raw status value")
    count: int = Field(default=0, ge=0, description="Number of tasks with this status")
