"""Use cases for categories, teams and activity assignments."""

from .assignments import AssignmentService
from .categories import CategoryTeamsService

__all__ = ["AssignmentService", "CategoryTeamsService"]
