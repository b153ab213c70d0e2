"""Write-once-per-key cache for parsed static assets (rule-packs, checklists).

Writes are idempotent -- re-parsing the same file gives an equivalent value --
so a race to fill the same key is harmless. The lock only keeps the dict
consistent under threaded servers.
"""

import threading
from typing import Any, Callable


class AssetCache:
    """Small keyed cache owned by the application context."""

    def __init__(self, name: str = "assets"):
        self.name = name
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value, loading and storing it on first use."""
        value = self._data.get(key)
        if value is not None:
            return value
        value = loader()
        with self._lock:
            return self._data.setdefault(key, value)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def stats(self) -> dict:
        return {"size": len(self._data), "keys": sorted(self._data)}

    def __len__(self) -> int:
        return len(self._data)
