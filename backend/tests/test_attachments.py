"""Attachments: upload limits, storage layout, view flags, deletion rules."""

from __future__ import annotations

import re
import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.repositories import attachments as attachment_repository
from app.services.attachments import build_storage_path, format_file_size, is_image_file
from tests.conftest import auth, make_task


class TestHelpers:
    @pytest.mark.parametrize(
        ("size", "label"),
        [
            (0, "0 Bytes"),
            (512, "512 Bytes"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1 MB"),
            (5 * 1024 ** 3, "5 GB"),
        ],
    )
    def test_format_file_size(self, size, label):
        assert format_file_size(size) == label

    def test_is_image_file(self):
        assert is_image_file("image/png") is True
        assert is_image_file("application/pdf") is False

    def test_storage_path_layout(self):
        task_id = uuid.uuid4()
        path = build_storage_path(task_id, "Screen Shot.PNG", now_ms=1700000000000)
        assert re.fullmatch(rf"{task_id}/1700000000000-[0-9a-f]{{12}}\.png", path)

    def test_storage_path_without_extension(self):
        assert build_storage_path(uuid.uuid4(), "Makefile", now_ms=1).endswith(".bin")


@pytest.fixture
async def task(db, users, project):
    return await make_task(db, project, assigned_to=users["dev"].id, created_by=users["pm"].id)


async def _upload(client, task, user, name="mock.png", data=b"\x89PNG....", content_type="image/png"):
    return await client.post(
        f"/tasks/{task.id}/attachments",
        files={"file": (name, data, content_type)},
        headers=auth(user),
    )


class TestAttachmentApi:
    async def test_dev_upload_flags_task_for_pm(self, client, task, users, store):
        response = await _upload(client, task, users["dev"])

        assert response.status_code == 201
        body = response.json()
        assert body["viewed_by_dev"] is True
        assert body["viewed_by_pm"] is False
        assert body["is_image"] is True
        assert body["file_path"] in store.objects

        refreshed = (await client.get(f"/tasks/{task.id}", headers=auth(users["pm"]))).json()
        assert refreshed["has_new_attachments_for_pm"] is True
        assert refreshed["last_attachment_by"] == str(users["dev"].id)

        seen = await client.post(f"/tasks/{task.id}/attachments/seen", headers=auth(users["pm"]))
        assert seen.status_code == 200
        refreshed = (await client.get(f"/tasks/{task.id}", headers=auth(users["pm"]))).json()
        assert refreshed["has_new_attachments_for_pm"] is False

    async def test_oversized_upload_is_rejected(self, client, task, users, store, monkeypatch):
        monkeypatch.setattr(settings, "ATTACHMENT_MAX_BYTES", 10)

        response = await _upload(client, task, users["dev"], data=b"x" * 11)

        assert response.status_code == 413
        assert store.objects == {}

    async def test_failed_metadata_insert_removes_stored_file(self, client, task, users, store, monkeypatch):
        async def broken_insert(db, **fields):
            raise SQLAlchemyError("insert failed")

        monkeypatch.setattr(attachment_repository, "create_attachment", broken_insert)

        with pytest.raises(SQLAlchemyError):
            await _upload(client, task, users["dev"])

        assert store.objects == {}

    async def test_download_and_signed_url(self, client, task, users):
        uploaded = (await _upload(client, task, users["dev"], name="notes.txt", data=b"hello", content_type="text/plain")).json()

        download = await client.get(f"/attachments/{uploaded['id']}/download", headers=auth(users["pm"]))
        assert download.content == b"hello"
        assert "notes.txt" in download.headers["content-disposition"]

        url = (await client.get(f"/attachments/{uploaded['id']}/url", headers=auth(users["pm"]))).json()
        assert url["url"].startswith("https://storage.test/")
        assert url["expires_in"] == settings.STORAGE_SIGNED_URL_TTL_SECONDS

    async def test_pm_marks_viewed(self, client, task, users):
        uploaded = (await _upload(client, task, users["dev"])).json()

        response = await client.post(f"/attachments/{uploaded['id']}/viewed", headers=auth(users["pm"]))

        assert response.json()["viewed_by_pm"] is True
        assert response.json()["viewed_by_pm_at"] is not None

    async def test_invisible_task_attachment_is_not_found(self, client, task, users):
        uploaded = (await _upload(client, task, users["dev"])).json()

        response = await client.get(f"/attachments/{uploaded['id']}/url", headers=auth(users["dev2"]))

        assert response.status_code == 404

    async def test_only_uploader_or_manager_deletes(self, client, db, users, project, store):
        shared = await make_task(db, project, assigned_to=users["dev"].id)
        uploaded = (await _upload(client, shared, users["pm"])).json()

        refused = await client.delete(f"/attachments/{uploaded['id']}", headers=auth(users["dev"]))
        assert refused.status_code == 403

        allowed = await client.delete(f"/attachments/{uploaded['id']}", headers=auth(users["pm"]))
        assert allowed.status_code == 204
        assert store.objects == {}

    async def test_storage_failure_on_delete_still_removes_row(self, client, task, users, store):
        uploaded = (await _upload(client, task, users["dev"])).json()
        store.fail_removes = True

        response = await client.delete(f"/attachments/{uploaded['id']}", headers=auth(users["dev"]))

        assert response.status_code == 204
        listed = await client.get(f"/tasks/{task.id}/attachments", headers=auth(users["dev"]))
        assert listed.json() == []
