from fastapi import Depends, HTTPException, Request

from app.core.config import Settings, get_settings
from app.integrations.stock_manager import StockManager


def get_stock_manager(request: Request) -> StockManager:
    """Dependency for the process-wide StockManager built in the app lifespan."""
    manager = getattr(request.app.state, "stock_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Stock manager not initialised")
    return manager


def get_webhook_secret(settings: Settings = Depends(get_settings)) -> str:
    """Get the webhook secret for authentication"""
    return settings.SHOPIFY_WEBHOOK_SECRET
