"""Per-user kanban colour overrides."""

from __future__ import annotations

import json

from app.client import KanbanColorsStore, UserKanbanColors
from app.core.constants import FALLBACK_KANBAN_COLOR

ADMIN_COLORS = {"dev": {"todo": "bg-gray-100", "review": "bg-yellow-100"}}


def test_lookup_order(tmp_path):
    colors = UserKanbanColors(KanbanColorsStore(tmp_path), ADMIN_COLORS, "u1")
    colors.set_color_for_status("dev", "todo", "bg-pink-200")

    assert colors.color_for_status("dev", "todo") == "bg-pink-200"
    assert colors.color_for_status("dev", "review") == "bg-yellow-100"
    assert colors.color_for_status("dev", "in_progress") == FALLBACK_KANBAN_COLOR
    assert colors.has_custom_color("dev", "todo")
    assert not colors.has_custom_color("dev", "review")


def test_overrides_persist_per_user(tmp_path):
    store = KanbanColorsStore(tmp_path)
    UserKanbanColors(store, ADMIN_COLORS, "u1").set_color_for_status("dev", "todo", "bg-pink-200")

    saved = json.loads(store.path_for("u1").read_text(encoding="utf-8"))
    other = UserKanbanColors(KanbanColorsStore(tmp_path), ADMIN_COLORS, "u2")
    reloaded = UserKanbanColors(KanbanColorsStore(tmp_path), ADMIN_COLORS, "u1")

    assert saved == {"dev": {"todo": "bg-pink-200"}}
    assert other.color_for_status("dev", "todo") == "bg-gray-100"
    assert reloaded.color_for_status("dev", "todo") == "bg-pink-200"


def test_reset_removes_file(tmp_path):
    store = KanbanColorsStore(tmp_path)
    colors = UserKanbanColors(store, ADMIN_COLORS, "u1")
    colors.set_color_for_status("dev", "todo", "bg-pink-200")

    colors.reset_colors()

    assert not store.path_for("u1").exists()
    assert colors.color_for_status("dev", "todo") == "bg-gray-100"


def test_corrupt_file_is_ignored(tmp_path):
    store = KanbanColorsStore(tmp_path)
    store.path_for("u1").write_text("{not json", encoding="utf-8")

    colors = UserKanbanColors(store, ADMIN_COLORS, "u1")

    assert store.overrides == {}
    assert colors.color_for_status("dev", "todo") == "bg-gray-100"


def test_writes_without_user_are_ignored(tmp_path):
    store = KanbanColorsStore(tmp_path)
    colors = UserKanbanColors(store, ADMIN_COLORS, None)

    colors.set_color_for_status("dev", "todo", "bg-pink-200")
    colors.reset_colors()

    assert list(tmp_path.iterdir()) == []
    assert not colors.has_custom_color("dev", "todo")
    assert colors.color_for_status("dev", "todo") == "bg-gray-100"


def test_initialize_is_noop_for_same_user(tmp_path):
    store = KanbanColorsStore(tmp_path)
    store.initialize_for_user("u1")
    store.overrides["dev"] = {"todo": "in-memory"}

    assert store.initialize_for_user("u1") == {"dev": {"todo": "in-memory"}}
    assert store.initialize_for_user("u2") == {}
