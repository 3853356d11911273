"""Project models."""

from .models import Project, ProjectStatus, ProjectVisibility

__all__ = ["Project", "ProjectStatus", "ProjectVisibility"]
