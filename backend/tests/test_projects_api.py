"""Clients, projects and memberships."""

from __future__ import annotations

from sqlalchemy import select

from app.db.models import Notification, ProjectFinance
from tests.conftest import auth


class TestProjects:
    async def test_create_project_adds_finance_row_and_notifies_admins(self, client, db, users):
        client_row = await client.post(
            "/clients", json={"name": "Acme Corp"}, headers=auth(users["pm"])
        )
        assert client_row.status_code == 201

        response = await client.post(
            "/projects",
            json={"name": "Acme Portal", "client_id": client_row.json()["id"], "tech_stack": ["fastapi"]},
            headers=auth(users["pm"]),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["client"]["name"] == "Acme Corp"

        finance = (await db.execute(select(ProjectFinance))).scalar_one()
        assert finance.total_value == 0
        assert finance.currency == "USD"

        notes = (await db.execute(select(Notification))).scalars().all()
        assert [(n.user_id, n.type) for n in notes] == [(users["admin"].id, "project_created")]

    async def test_dev_sees_only_member_projects(self, client, users, project):
        before = await client.get("/projects", headers=auth(users["dev"]))
        hidden = await client.get(f"/projects/{project.id}", headers=auth(users["dev"]))
        assert before.json() == []
        assert hidden.status_code == 404

        members = await client.put(
            f"/projects/{project.id}/members",
            json={"user_ids": [str(users["dev"].id), str(users["dev"].id)]},
            headers=auth(users["pm"]),
        )
        assert [m["user"]["id"] for m in members.json()] == [str(users["dev"].id)]

        after = await client.get("/projects", headers=auth(users["dev"]))
        assert [p["id"] for p in after.json()] == [str(project.id)]

    async def test_remove_member(self, client, users, project):
        await client.put(
            f"/projects/{project.id}/members",
            json={"user_ids": [str(users["dev"].id), str(users["dev2"].id)]},
            headers=auth(users["pm"]),
        )

        response = await client.delete(
            f"/projects/{project.id}/members/{users['dev'].id}", headers=auth(users["pm"])
        )

        assert response.status_code == 204
        members = await client.get(f"/projects/{project.id}/members", headers=auth(users["pm"]))
        assert [m["user_id"] for m in members.json()] == [str(users["dev2"].id)]

    async def test_dev_cannot_write_projects(self, client, users):
        response = await client.post("/projects", json={"name": "Nope"}, headers=auth(users["dev"]))
        assert response.status_code == 403

    async def test_deleting_project_removes_tasks(self, client, users, project):
        task = await client.post(
            "/tasks", json={"project_id": str(project.id), "title": "Doomed"}, headers=auth(users["pm"])
        )

        deleted = await client.delete(f"/projects/{project.id}", headers=auth(users["admin"]))
        gone = await client.get(f"/tasks/{task.json()['id']}", headers=auth(users["pm"]))

        assert deleted.status_code == 204
        assert gone.status_code == 404
