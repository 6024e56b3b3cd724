"""
Purpose: Builds the process-wide StockManager at application startup.

Contents:
setup_stock_manager: Creates the Shopify client, the shared ConcurrencyLimiter and DedupCache, and wires them into the
VariantResolver, PropagationEngine and StockManager. Called once from the FastAPI lifespan; the returned manager is
shared by every webhook request so the limiter and dedup cache are global to the process.
"""

import logging
from typing import Optional

from app.core.config import Settings, get_settings
from app.integrations.dedup import DedupCache
from app.integrations.limiter import ConcurrencyLimiter
from app.integrations.metrics import MetricsCollector
from app.integrations.propagation import PropagationEngine
from app.integrations.stock_manager import StockManager
from app.integrations.variant_resolver import VariantResolver
from app.services.shopify.client import ShopifyGraphQLClient

logger = logging.getLogger(__name__)


def setup_stock_manager(settings: Optional[Settings] = None, client=None) -> StockManager:
    """
    Initialize and configure the stock manager with its Shopify integration
    """
    settings = settings or get_settings()
    if client is None:
        client = ShopifyGraphQLClient(
            shop_url=settings.SHOPIFY_SHOP_URL,
            access_token=settings.SHOPIFY_ADMIN_API_ACCESS_TOKEN,
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.SHOPIFY_TIMEOUT_SECONDS,
        )

    limiter = ConcurrencyLimiter(
        capacity=settings.SYNC_CONCURRENCY,
        call_timeout=settings.SYNC_CALL_TIMEOUT_SECONDS,
        max_retries=settings.SYNC_MAX_RETRIES,
        backoff_seconds=settings.SYNC_RETRY_BACKOFF_SECONDS,
    )
    manager = StockManager(
        resolver=VariantResolver(client, page_size=settings.SYNC_VARIANT_PAGE_SIZE),
        engine=PropagationEngine(client, limiter),
        dedup_cache=DedupCache(ttl_seconds=settings.SYNC_DEDUP_TTL_SECONDS),
        metrics=MetricsCollector(recent_failures=settings.SYNC_RECENT_FAILURES),
    )
    logger.info(
        f"StockManager ready: concurrency={settings.SYNC_CONCURRENCY}, "
        f"dedup_ttl={settings.SYNC_DEDUP_TTL_SECONDS}s, retries={settings.SYNC_MAX_RETRIES}"
    )
    return manager
