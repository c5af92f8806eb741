"""
Change feed — best-effort, in-process fan-out of row changes.

Write paths call `record_change(db, ...)` while they work; the changes
are parked on the session and only published by `publish_pending` once
the surrounding transaction has committed, so subscribers never see a
change that was rolled back.

Each subscriber owns a bounded queue.  When a consumer falls behind and
its queue is full, new events for it are dropped.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import ChangeEvent, UserRole
from app.core.logging import get_logger

logger = get_logger(__name__)

PENDING_KEY = "pending_changes"

# Tables whose events are only visible to the row's owner
OWNER_SCOPED_TABLES = {"notifications": "user_id"}

# Tables a developer only hears about for rows assigned to them
ASSIGNEE_SCOPED_TABLES = {"tasks": "assigned_to"}


@dataclass
class Change:
    """One committed row change."""

    table: str
    event: ChangeEvent
    record_id: str
    keys: dict[str, str] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "event": str(self.event),
            "record_id": self.record_id,
            **self.keys,
        }


def parse_filter(expression: str | None) -> tuple[str, str] | None:
    """
    Parse a `column=eq.value` filter expression.

    Returns (column, value), or None for an empty expression.
    Raises ValueError for anything else.
    """
    if not expression:
        return None
    column, sep, rest = expression.partition("=")
    if not sep or not column or not rest.startswith("eq."):
        raise ValueError(f"Unsupported filter expression: {expression!r}")
    value = rest[len("eq."):]
    if not value:
        raise ValueError(f"Unsupported filter expression: {expression!r}")
    return column, value


@dataclass(eq=False)
class Subscription:
    """A subscriber's table/filter selection plus its delivery queue."""

    user_id: str
    role: str | None = None
    table: str | None = None
    row_filter: tuple[str, str] | None = None
    queue: asyncio.Queue = field(
        default_factory=lambda: asyncio.Queue(maxsize=settings.REALTIME_QUEUE_SIZE)
    )
    dropped: int = 0

    def matches(self, change: Change) -> bool:
        if self.table is not None and change.table != self.table:
            return False

        owner_column = OWNER_SCOPED_TABLES.get(change.table)
        if owner_column is not None and change.keys.get(owner_column) != self.user_id:
            return False

        if self.role == UserRole.DEV:
            assignee_column = ASSIGNEE_SCOPED_TABLES.get(change.table)
            if assignee_column is not None and change.keys.get(assignee_column) != self.user_id:
                return False

        if self.row_filter is not None:
            column, value = self.row_filter
            actual = change.record_id if column == "id" else change.keys.get(column)
            if actual != value:
                return False
        return True


class ChangeFeed:
    """Fan-out hub holding every live subscription of this process."""

    def __init__(self) -> None:
        self._subscriptions: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        user_id: str,
        *,
        role: str | None = None,
        table: str | None = None,
        filter_expression: str | None = None,
    ) -> Subscription:
        subscription = Subscription(
            user_id=str(user_id),
            role=str(role) if role is not None else None,
            table=table,
            row_filter=parse_filter(filter_expression),
        )
        self._subscriptions.add(subscription)
        logger.debug("Realtime subscriber added", user_id=str(user_id), table=table)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.discard(subscription)

    def publish(self, change: Change) -> int:
        """Deliver a change to every matching subscriber. Returns delivery count."""
        delivered = 0
        message = change.to_message()
        for subscription in list(self._subscriptions):
            if not subscription.matches(change):
                continue
            try:
                subscription.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                subscription.dropped += 1
                logger.warning(
                    "Realtime event dropped for slow subscriber",
                    user_id=subscription.user_id,
                    table=change.table,
                    dropped=subscription.dropped,
                )
        return delivered


change_feed = ChangeFeed()


def record_change(
    db: AsyncSession,
    table: str,
    event: ChangeEvent,
    record_id: Any,
    **keys: Any,
) -> None:
    """Queue a change on the session; published after commit."""
    pending = db.info.setdefault(PENDING_KEY, [])
    pending.append(
        Change(
            table=table,
            event=event,
            record_id=str(record_id),
            keys={k: str(v) for k, v in keys.items() if v is not None},
        )
    )


def discard_pending(db: AsyncSession) -> None:
    db.info.pop(PENDING_KEY, None)


def publish_pending(db: AsyncSession, feed: ChangeFeed | None = None) -> int:
    """Publish and clear the changes recorded on a committed session."""
    feed = feed or change_feed
    pending: list[Change] = db.info.pop(PENDING_KEY, [])
    delivered = 0
    for change in pending:
        delivered += feed.publish(change)
    return delivered
