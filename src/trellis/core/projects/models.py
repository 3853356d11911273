"""
Project data models for trellis.

A project is the unit of access control. Its owner, its member list and
its visibility together decide which callers may see the project and,
through it, every task it contains.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectStatus(str, Enum):
    """Project lifecycle status."""

    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ProjectVisibility(str, Enum):
    """
    Who can read a project.

    PRIVATE and TEAM both restrict reads to the owner and members;
    PUBLIC grants read access to every caller.
    """

    PRIVATE = "private"
    TEAM = "team"
    PUBLIC = "public"


class Project(BaseModel):
    """
    A project owned by one user and shared with a set of members.

    Example:
        >>> project = Project(id="p-1", name="Docs", owner_id="u-1", members=["u-2"])
        >>> project.is_visible_to("u-2")
        True
        >>> project.is_visible_to("u-3")
        False
    """

    id: str = Field(..., description="Unique project identifier")
    name: str = Field(default="", description="Project name")
    description: str = Field(default="", description="Project description")
    owner_id: str = Field(..., description="Owner user identifier", alias="ownerId")
    members: list[str] = Field(
        default_factory=list, description="Member user identifiers, in insertion order"
    )
    visibility: ProjectVisibility = Field(
        default=ProjectVisibility.TEAM, description="Read visibility"
    )
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, description="Lifecycle status")

    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(
        populate_by_name=True,
    )

    @field_validator("members", mode="after")
    @classmethod
    def dedupe_members(cls, v: list[str]) -> list[str]:
        """Drop repeated member ids while keeping first-seen order."""
        return list(dict.fromkeys(v))

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_owner(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def is_member(self, user_id: str) -> bool:
        return user_id in self.members

    def is_public(self) -> bool:
        return self.visibility == ProjectVisibility.PUBLIC

    def is_visible_to(self, user_id: str) -> bool:
        """
        Check whether a non-admin user may read this project.

        The owner is always authorized, whatever the member list says.
        """
        return self.is_owner(user_id) or self.is_member(user_id) or self.is_public()

    def participants(self) -> list[str]:
        """Owner followed by members, without duplicates."""
        return list(dict.fromkeys([self.owner_id, *self.members]))
