"""
Fans the new quantity out to every sibling inventory item at one location.

Each sibling gets exactly one inventorySetQuantities call, run through the
shared ConcurrencyLimiter. A failing sibling never stops the others; the
caller gets one SyncOutcome per sibling and decides what partial failure means.
"""

import asyncio
import logging
from typing import Any, List

from app.core.enums import ErrorKind
from app.core.exceptions import (
    PropagationError,
    ShopifyAPIError,
    TransientUpstreamError,
    UpstreamTimeoutError,
)
from app.integrations.events import SyncBatchResult, SyncOutcome, VariantFamily
from app.integrations.limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


class PropagationEngine:
    def __init__(self, client, limiter: ConcurrencyLimiter):
        self.client = client
        self.limiter = limiter

    async def propagate(
        self,
        family: VariantFamily,
        origin_item_id: str,
        location_id: str,
        available: int,
    ) -> SyncBatchResult:
        targets = [item_id for item_id in family.inventory_item_ids if item_id != origin_item_id]
        if not targets:
            return SyncBatchResult()

        logger.info(
            f"Propagating available={available} at {location_id} to {len(targets)} siblings of {origin_item_id}"
        )
        tasks = [
            asyncio.create_task(self.limiter.run(self._set_quantity, item_id, location_id, available))
            for item_id in targets
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes = [self._to_outcome(item_id, result) for item_id, result in zip(targets, results)]
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    f"Failed to set {outcome.inventory_item_id} at {location_id}: "
                    f"{outcome.error_kind.value} {outcome.message or ''}".rstrip(),
                    extra={
                        "origin_item_id": origin_item_id,
                        "inventory_item_id": outcome.inventory_item_id,
                        "location_id": location_id,
                        "error_kind": outcome.error_kind.value,
                        "user_errors": outcome.user_errors,
                    },
                )
        return SyncBatchResult.from_outcomes(outcomes)

    async def _set_quantity(self, item_id: str, location_id: str, available: int) -> None:
        user_errors = await self.client.set_inventory_quantity(item_id, location_id, available)
        if user_errors:
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in user_errors
            )
            raise PropagationError(item_id, ErrorKind.USER_ERRORS.value, messages, user_errors=list(user_errors))

    @staticmethod
    def _to_outcome(item_id: str, result: Any) -> SyncOutcome:
        if not isinstance(result, BaseException):
            return SyncOutcome(inventory_item_id=item_id, ok=True)

        if isinstance(result, PropagationError):
            return SyncOutcome(
                inventory_item_id=item_id,
                ok=False,
                error_kind=ErrorKind(result.kind),
                message=str(result),
                user_errors=result.user_errors,
            )
        if isinstance(result, UpstreamTimeoutError):
            kind = ErrorKind.TIMEOUT
        elif isinstance(result, TransientUpstreamError) and result.rate_limited:
            kind = ErrorKind.RATE_LIMITED
        elif isinstance(result, ShopifyAPIError):
            kind = ErrorKind.TRANSPORT
        else:
            logger.error(f"Unexpected error setting {item_id}: {result!r}", exc_info=result)
            kind = ErrorKind.TRANSPORT
        return SyncOutcome(inventory_item_id=item_id, ok=False, error_kind=kind, message=str(result))
