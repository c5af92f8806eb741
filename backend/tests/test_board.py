"""Kanban layout and drag-and-drop rules (pure functions, no database)."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.core.constants import TaskStatus
from app.core.errors import DomainValidationError, PermissionDeniedError
from app.db.models import Task
from app.services.board import build_board, is_overdue, is_unread_comment, move_changes

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def _task(status: str, **fields) -> Task:
    return Task(id=uuid.uuid4(), project_id=uuid.uuid4(), title="Card", status=status, **fields)


# ===========================================================================
# Moves
# ===========================================================================

class TestMoveChanges:
    def test_same_status_is_a_no_op(self):
        assert move_changes(_task("todo"), role="pm", new_status=TaskStatus.TODO, now=NOW) == {}

    @pytest.mark.parametrize("target", [TaskStatus.DONE, TaskStatus.ARCHIVED])
    def test_dev_cannot_finish_tasks(self, target):
        with pytest.raises(PermissionDeniedError):
            move_changes(_task("review"), role="dev", new_status=target, now=NOW)

    def test_dev_starting_work_clears_previous_rejection(self):
        task = _task("todo", review_status="rejected", rejection_reason="Fix spacing")
        changes = move_changes(task, role="dev", new_status=TaskStatus.IN_PROGRESS, now=NOW)
        assert changes == {
            "status": "in_progress",
            "review_status": None,
            "rejection_reason": None,
            "rejection_timestamp": None,
        }

    def test_dev_submits_for_review(self):
        changes = move_changes(_task("in_progress"), role="dev", new_status=TaskStatus.REVIEW, now=NOW)
        assert changes == {"status": "review"}

    def test_rejection_requires_reason(self):
        with pytest.raises(DomainValidationError):
            move_changes(_task("review"), role="pm", new_status=TaskStatus.TODO, now=NOW, rejection_reason="   ")

    def test_rejection_records_reason_and_unread_flag(self):
        changes = move_changes(
            _task("review"),
            role="pm",
            new_status=TaskStatus.TODO,
            now=NOW,
            rejection_reason="  Button is misaligned ",
        )
        assert changes["status"] == "todo"
        assert changes["review_status"] == "rejected"
        assert changes["rejection_reason"] == "Button is misaligned"
        assert changes["rejection_timestamp"] == NOW
        assert changes["rejection_read_by_dev"] is False

    def test_approval_completes_task(self):
        task = _task("review", rejection_reason="old")
        changes = move_changes(task, role="pm", new_status=TaskStatus.DONE, now=NOW)
        assert changes["review_status"] == "approved"
        assert changes["completed_at"] == NOW
        assert changes["rejection_reason"] is None

    def test_reopening_done_task_clears_completion(self):
        task = _task("done", review_status="approved", completed_at=NOW)
        changes = move_changes(task, role="pm", new_status=TaskStatus.IN_PROGRESS, now=NOW)
        assert changes == {"status": "in_progress", "review_status": None, "completed_at": None}

    def test_archiving_stamps_archived_at(self):
        changes = move_changes(_task("done"), role="admin", new_status=TaskStatus.ARCHIVED, now=NOW)
        assert changes == {"status": "archived", "archived_at": NOW}

    def test_archiving_done_task_keeps_review_outcome(self):
        task = _task("done", review_status="approved", completed_at=NOW - timedelta(days=8))
        changes = move_changes(task, role="pm", new_status=TaskStatus.ARCHIVED, now=NOW)
        assert changes == {"status": "archived", "archived_at": NOW}

    def test_leaving_archive_clears_archived_at(self):
        task = _task("archived", archived_at=NOW)
        changes = move_changes(task, role="pm", new_status=TaskStatus.TODO, now=NOW)
        assert changes["archived_at"] is None

    def test_direct_move_to_done_gets_completion_time(self):
        changes = move_changes(_task("in_progress"), role="pm", new_status=TaskStatus.DONE, now=NOW)
        assert changes["completed_at"] == NOW


# ===========================================================================
# Board layout
# ===========================================================================

class TestBuildBoard:
    def test_pm_columns_group_todo_and_in_progress(self):
        tasks = [_task("todo"), _task("in_progress"), _task("review"), _task("done"), _task("archived")]
        columns = build_board(tasks, role="pm", user_id=uuid.uuid4(), today=TODAY)

        assert [c.title for c in columns] == ["Assigned", "To review", "Completed"]
        assert [len(c.cards) for c in columns] == [2, 1, 1]

    def test_dev_only_sees_own_tasks(self):
        me = uuid.uuid4()
        mine = _task("todo", assigned_to=me)
        theirs = _task("todo", assigned_to=uuid.uuid4())
        columns = build_board([mine, theirs], role="dev", user_id=me, today=TODAY)

        assert [c.title for c in columns] == ["To do", "In progress", "Ready for review"]
        assert [card.task for card in columns[0].cards] == [mine]

    def test_cards_carry_overdue_and_unread_counts(self):
        task = _task("todo", due_date=TODAY - timedelta(days=1))
        columns = build_board([task], role="pm", user_id=uuid.uuid4(), today=TODAY, unread_by_task={task.id: 3})
        card = columns[0].cards[0]
        assert card.is_overdue is True
        assert card.unread_comments == 3


class TestOverdue:
    def test_due_today_is_not_overdue(self):
        assert is_overdue(_task("todo", due_date=TODAY), TODAY) is False

    def test_past_due_is_overdue(self):
        assert is_overdue(_task("in_progress", due_date=date(2026, 3, 9)), TODAY) is True

    @pytest.mark.parametrize("status", ["done", "archived"])
    def test_finished_tasks_never_overdue(self, status):
        assert is_overdue(_task(status, due_date=date(2020, 1, 1)), TODAY) is False

    def test_no_due_date(self):
        assert is_overdue(_task("todo"), TODAY) is False


class TestUnreadComment:
    def test_other_users_comment_is_unread(self):
        me = uuid.uuid4()
        comment = SimpleNamespace(user_id=uuid.uuid4(), deleted_at=None, read_by=[])
        assert is_unread_comment(comment, me) is True

    def test_read_by_me(self):
        me = uuid.uuid4()
        comment = SimpleNamespace(user_id=uuid.uuid4(), deleted_at=None, read_by=[str(me)])
        assert is_unread_comment(comment, me) is False

    def test_own_and_deleted_comments_are_never_unread(self):
        me = uuid.uuid4()
        own = SimpleNamespace(user_id=me, deleted_at=None, read_by=[])
        deleted = SimpleNamespace(user_id=uuid.uuid4(), deleted_at=NOW, read_by=[])
        assert is_unread_comment(own, me) is False
        assert is_unread_comment(deleted, me) is False
