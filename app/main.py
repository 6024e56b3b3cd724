# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.logging_config import configure_logging
from app.integrations.setup import setup_stock_manager
from app.routes import health
from app.routes.webhooks import router as webhook_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()

    # Process-wide: one limiter and one dedup cache for every webhook
    app.state.stock_manager = setup_stock_manager()
    try:
        yield  # This is where the app runs
    finally:
        manager = getattr(app.state, "stock_manager", None)
        if manager:
            manager.shutdown()
            logger.info("StockManager shut down")


app = FastAPI(
    title="Variant Inventory Sync",
    lifespan=lifespan
)

app.include_router(webhook_router)  # Webhooks are verified by HMAC, not session auth
app.include_router(health.router)
