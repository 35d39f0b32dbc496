"""Short-lived cache for spreadsheet reads."""

import time
from typing import Any, Callable, Dict, Optional, Tuple


class ResponseCache:
    """
    TTL cache owned by a single client instance.

    Expired entries are kept so a failed refresh can still serve the last
    good response through ``get_stale``.

    Args:
        ttl_seconds: How long an entry counts as fresh
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.monotonic
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Fresh value for key, or None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.clock() - stored_at >= self.ttl_seconds:
            return None
        return value

    def get_stale(self, key: str) -> Optional[Any]:
        """Last stored value for key regardless of age."""
        entry = self._entries.get(key)
        return entry[1] if entry else None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self.clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
