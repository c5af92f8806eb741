"""Admin kanban colour setting."""

from __future__ import annotations

from app.core.constants import DEFAULT_KANBAN_COLORS
from tests.conftest import auth

COLORS = {"dev": {"todo": "bg-red-100"}, "pm": {"done": "bg-emerald-200"}}


async def test_defaults_when_unset(client, users):
    response = await client.get("/settings/kanban-colors", headers=auth(users["dev"]))

    assert response.status_code == 200
    assert response.json() == {"colors": DEFAULT_KANBAN_COLORS}


async def test_admin_replaces_colors(client, users):
    saved = await client.put(
        "/settings/kanban-colors", json={"colors": COLORS}, headers=auth(users["admin"])
    )
    again = await client.put(
        "/settings/kanban-colors", json={"colors": COLORS}, headers=auth(users["admin"])
    )
    read = await client.get("/settings/kanban-colors", headers=auth(users["dev"]))

    assert saved.json() == {"colors": COLORS}
    assert again.status_code == 200
    assert read.json() == {"colors": COLORS}


async def test_only_admin_may_write(client, users):
    response = await client.put(
        "/settings/kanban-colors", json={"colors": COLORS}, headers=auth(users["pm"])
    )
    assert response.status_code == 403
