"""
Async HTTP client for the ProjectDesk API.

Hosts the client-side state the API itself does not keep: the query
cache used for optimistic task updates and the per-user kanban colour
overrides.
"""

from app.client.api import ApiError, ProjectDeskClient
from app.client.cache import QueryCache
from app.client.kanban_colors import KanbanColorsStore, UserKanbanColors

__all__ = [
    "ApiError",
    "KanbanColorsStore",
    "ProjectDeskClient",
    "QueryCache",
    "UserKanbanColors",
]
