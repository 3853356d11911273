"""
Caller identity and access scope models.

The caller's identity and role arrive already authenticated from upstream;
nothing here verifies them. AccessScope is a derived value that lives for
one request (or one cache fill) and is never persisted.
"""

from dataclasses import dataclass, field
from enum import Enum

from trellis.core.projects.models import Project


class CallerRole(str, Enum):
    """Closed set of roles that affect what a caller may aggregate over."""

    ADMIN = "admin"
    USER = "user"

    @classmethod
    def parse(cls, value: "str | CallerRole | None") -> "CallerRole":
        """
        Normalize an upstream role value.

        Only "admin" grants the admin scope; every other value, including
        unknown roles such as "manager", is treated as a standard user.

        Example:
            >>> CallerRole.parse("ADMIN")
            <CallerRole.ADMIN: 'admin'>
            >>> CallerRole.parse("manager")
            <CallerRole.USER: 'user'>
        """
        if isinstance(value, CallerRole):
            return value
        if value is not None and value.strip().lower() == cls.ADMIN.value:
            return cls.ADMIN
        return cls.USER


@dataclass(frozen=True)
class Caller:
    """An authenticated caller."""

    id: str
    role: CallerRole = CallerRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == CallerRole.ADMIN


@dataclass(frozen=True)
class AccessScope:
    """
    The projects one caller may include in an aggregate.

    Attributes:
        caller: Who the scope was resolved for
        projects: Visible projects, one entry per project id
        project_ids: Ids of ``projects``, in the same order
    """

    caller: Caller
    projects: tuple[Project, ...] = ()
    project_ids: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "project_ids", tuple(p.id for p in self.projects))

    @property
    def is_empty(self) -> bool:
        return not self.projects

    def __len__(self) -> int:
        return len(self.projects)
