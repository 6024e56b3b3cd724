"""
Short-lived memory of inventory items this process has just written.

Setting a sibling's quantity makes Shopify fire an inventory_levels/update
webhook for that sibling, which would start a new sync cycle and loop forever.
Items marked here are ignored until the TTL lapses. State is per process: with
several instances behind a load balancer the suppression only holds per
instance unless this is moved to a shared store.
"""

import threading
import time
from typing import Callable, Dict, Optional

DEFAULT_TTL_SECONDS = 30.0


class DedupCache:
    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, float] = {}
        self._lock = threading.Lock()

    def was_recently_updated(self, inventory_item_id: str) -> bool:
        with self._lock:
            last_updated = self._entries.get(inventory_item_id)
        if last_updated is None:
            return False
        return self._clock() - last_updated < self.ttl_seconds

    def mark_updated(self, inventory_item_id: str) -> None:
        with self._lock:
            self._entries[inventory_item_id] = self._clock()

    def purge_expired(self) -> int:
        """Drops stale entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, ts in self._entries.items() if now - ts >= self.ttl_seconds]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, inventory_item_id: str) -> bool:
        return self.was_recently_updated(inventory_item_id)
