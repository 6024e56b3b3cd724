import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.enums import SyncStatus
from app.core.exceptions import ResolutionError, ValidationError
from app.integrations.dedup import DedupCache
from app.integrations.events import InventoryUpdateEvent, SyncBatchResult, SyncResult
from app.integrations.metrics import MetricsCollector
from app.integrations.propagation import PropagationEngine
from app.integrations.variant_resolver import VariantResolver

logger = logging.getLogger(__name__)


class StockManager:
    """
    Drives one inventory event through validate -> dedup -> resolve -> propagate -> mark.

    Holds no per-event state; the dedup cache, limiter (inside the engine)
    and metrics are shared by every concurrently handled event.
    """

    def __init__(
        self,
        resolver: VariantResolver,
        engine: PropagationEngine,
        dedup_cache: DedupCache,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.resolver = resolver
        self.engine = engine
        self.dedup_cache = dedup_cache
        self.metrics = metrics or MetricsCollector()

    def get_metrics(self) -> dict:
        """Current sync metrics for all processed events"""
        return self.metrics.snapshot()

    @staticmethod
    def parse_event(payload: Any) -> InventoryUpdateEvent:
        if not isinstance(payload, dict):
            raise ValidationError("Payload must be a JSON object")
        try:
            return InventoryUpdateEvent.model_validate(payload)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(problems) from e

    async def process_inventory_update(self, payload: Any) -> SyncResult:
        """Entry point for raw webhook bodies."""
        try:
            event = self.parse_event(payload)
        except ValidationError as e:
            logger.warning(f"Rejected inventory webhook: {e}")
            result = SyncResult(status=SyncStatus.INVALID, error=str(e))
            self.metrics.record_result(result)
            return result
        return await self.process_stock_update(event)

    async def process_stock_update(self, event: InventoryUpdateEvent) -> SyncResult:
        """Process an already validated event"""
        try:
            result = await self._process(event)
        except Exception as e:
            logger.error(f"Unexpected error syncing {event.inventory_item_gid}: {e}", exc_info=True)
            self.metrics.record_result(SyncResult(
                status=SyncStatus.FAILED,
                inventory_item_id=event.inventory_item_gid,
                location_id=event.location_gid,
                error=str(e),
            ))
            raise
        self.metrics.record_result(result)
        return result

    async def _process(self, event: InventoryUpdateEvent) -> SyncResult:
        item_id = event.inventory_item_gid
        location_id = event.location_gid

        # Our own writes come back as webhooks; drop them here
        if self.dedup_cache.was_recently_updated(item_id):
            logger.info(f"Skipping {item_id}: updated by this service within the last {self.dedup_cache.ttl_seconds}s")
            return SyncResult(status=SyncStatus.DEDUPED, inventory_item_id=item_id, location_id=location_id)

        try:
            family = await self.resolver.resolve_family(item_id)
        except ResolutionError as e:
            logger.error(f"Variant resolution failed for {item_id}: {e}")
            return SyncResult(
                status=SyncStatus.FAILED,
                inventory_item_id=item_id,
                location_id=location_id,
                error=str(e),
            )

        batch = await self.engine.propagate(family, item_id, location_id, event.available)
        self._mark_updated(item_id, batch)

        status = SyncStatus.PARTIAL if batch.failed else SyncStatus.SYNCED
        log = logger.warning if batch.failed else logger.info
        log(
            f"Synced {item_id} -> available={event.available} at {location_id}: "
            f"{len(batch.succeeded)}/{batch.attempted} siblings updated"
        )
        return SyncResult(
            status=status,
            inventory_item_id=item_id,
            location_id=location_id,
            product_id=family.product_id,
            batch=batch,
        )

    def _mark_updated(self, origin_item_id: str, batch: SyncBatchResult) -> None:
        self.dedup_cache.mark_updated(origin_item_id)
        for item_id in batch.succeeded:
            self.dedup_cache.mark_updated(item_id)
        self.dedup_cache.purge_expired()

    def shutdown(self) -> None:
        """Discard process-wide state"""
        self.dedup_cache.clear()
        self.metrics.reset()
