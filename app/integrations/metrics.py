"""
In-process sync metrics.

Partial failures do not fail the webhook, so this is where operators see them:
counts per terminal status, per-sibling outcome totals, and the most recent
failed outcomes. Exposed via GET /health/sync.
"""

from collections import Counter, deque
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.enums import SyncStatus
from app.integrations.events import SyncResult


class MetricsCollector:
    def __init__(self, recent_failures: int = 50):
        self.events: Counter = Counter()
        self.members: Counter = Counter()
        self.failures_by_kind: Counter = Counter()
        self.recent_failures = deque(maxlen=recent_failures)
        self.last_event_at: Optional[datetime] = None

    def record_result(self, result: SyncResult) -> None:
        now = datetime.now(timezone.utc)
        self.last_event_at = now
        self.events[result.status.value] += 1

        batch = result.batch
        if batch is None:
            return
        self.members["attempted"] += batch.attempted
        self.members["succeeded"] += len(batch.succeeded)
        self.members["failed"] += len(batch.failed)
        for outcome in batch.failed:
            self.failures_by_kind[outcome.error_kind.value] += 1
            self.recent_failures.append({
                "at": now.isoformat(),
                "origin_item_id": result.inventory_item_id,
                "location_id": result.location_id,
                "product_id": result.product_id,
                **outcome.model_dump(mode="json"),
            })

    def snapshot(self) -> Dict[str, Any]:
        return {
            "events": {status.value: self.events.get(status.value, 0) for status in SyncStatus},
            "members": {
                "attempted": self.members.get("attempted", 0),
                "succeeded": self.members.get("succeeded", 0),
                "failed": self.members.get("failed", 0),
            },
            "failures_by_kind": dict(self.failures_by_kind),
            "recent_failures": list(self.recent_failures),
            "last_event_at": self.last_event_at.isoformat() if self.last_event_at else None,
        }

    def reset(self) -> None:
        self.events.clear()
        self.members.clear()
        self.failures_by_kind.clear()
        self.recent_failures.clear()
        self.last_event_at = None
