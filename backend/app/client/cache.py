"""
In-memory query cache keyed by tuples.

Keys look like `("tasks",)`, `("tasks", project_id)` or
`("comments", task_id)`.  A prefix selects every key that starts with
it, so `invalidate(("tasks",))` drops all task lists at once.
"""

from __future__ import annotations

import copy
from typing import Any, Callable

CacheKey = tuple[Any, ...]


def _matches(key: CacheKey, prefix: CacheKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, key: CacheKey, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = value

    def keys(self, prefix: CacheKey = ()) -> list[CacheKey]:
        return [k for k in self._entries if _matches(k, prefix)]

    def set_matching(self, prefix: CacheKey, updater: Callable[[Any], Any]) -> int:
        """Replace every entry under `prefix` with `updater(old_value)`."""
        keys = self.keys(prefix)
        for key in keys:
            self._entries[key] = updater(self._entries[key])
        return len(keys)

    def invalidate(self, prefix: CacheKey = ()) -> int:
        keys = self.keys(prefix)
        for key in keys:
            del self._entries[key]
        return len(keys)

    def snapshot(self, prefix: CacheKey = ()) -> dict[CacheKey, Any]:
        """Deep copy of the entries under `prefix`, for `restore`."""
        return {k: copy.deepcopy(v) for k, v in self._entries.items() if _matches(k, prefix)}

    def restore(self, snapshot: dict[CacheKey, Any], prefix: CacheKey = ()) -> None:
        """Put the entries under `prefix` back to exactly what `snapshot` held."""
        for key in self.keys(prefix):
            del self._entries[key]
        self._entries.update(snapshot)
