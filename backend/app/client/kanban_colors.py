"""
Per-user kanban column colours layered over the admin defaults.

Overrides live in one JSON file per user,
`{directory}/user_kanban_colors_{user_id}.json`, shaped like the admin
setting: `{"dev": {"todo": "bg-blue-100"}, "pm": {...}}`.  Lookup order
is user override, then admin colour, then FALLBACK_KANBAN_COLOR.
"""

from __future__ import annotations

import json
from pathlib import Path

from app.core.constants import FALLBACK_KANBAN_COLOR
from app.core.logging import get_logger

logger = get_logger(__name__)

ColorMap = dict[str, dict[str, str]]


class KanbanColorsStore:
    """File-backed overrides for whichever user is currently signed in."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.user_id: str | None = None
        self.overrides: ColorMap = {}

    def path_for(self, user_id: str) -> Path:
        return self.directory / f"user_kanban_colors_{user_id}.json"

    def initialize_for_user(self, user_id: str | None) -> ColorMap:
        """Load the user's overrides; a no-op when that user is already loaded."""
        user_id = str(user_id) if user_id is not None else None
        if user_id == self.user_id:
            return self.overrides

        self.user_id = user_id
        self.overrides = self._load(user_id) if user_id else {}
        return self.overrides

    def _load(self, user_id: str) -> ColorMap:
        path = self.path_for(user_id)
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable kanban colours", path=str(path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            return {}
        return {
            role: {str(s): str(c) for s, c in statuses.items()}
            for role, statuses in data.items()
            if isinstance(statuses, dict)
        }

    def _save(self, user_id: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path_for(user_id).write_text(json.dumps(self.overrides, indent=2), encoding="utf-8")

    def set_color_for_status(self, user_id: str, role: str, status: str, color: str) -> None:
        self.initialize_for_user(user_id)
        self.overrides.setdefault(role, {})[status] = color
        self._save(str(user_id))

    def reset_colors(self, user_id: str) -> None:
        """Drop every override for the user, file included."""
        self.initialize_for_user(user_id)
        self.overrides = {}
        self.path_for(str(user_id)).unlink(missing_ok=True)


class UserKanbanColors:
    """Colour lookup for one user; writes are ignored when nobody is signed in."""

    def __init__(self, store: KanbanColorsStore, admin_colors: ColorMap, user_id: str | None) -> None:
        self.store = store
        self.admin_colors = admin_colors or {}
        self.user_id = str(user_id) if user_id is not None else None
        store.initialize_for_user(self.user_id)

    def color_for_status(self, role: str, status: str) -> str:
        override = self.store.overrides.get(role, {}).get(status) if self.user_id else None
        if override:
            return override
        return self.admin_colors.get(role, {}).get(status) or FALLBACK_KANBAN_COLOR

    def has_custom_color(self, role: str, status: str) -> bool:
        if not self.user_id:
            return False
        return bool(self.store.overrides.get(role, {}).get(status))

    def set_color_for_status(self, role: str, status: str, color: str) -> None:
        if not self.user_id:
            return
        self.store.set_color_for_status(self.user_id, role, status, color)

    def reset_colors(self) -> None:
        if not self.user_id:
            return
        self.store.reset_colors(self.user_id)
