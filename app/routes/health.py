from fastapi import APIRouter, Depends

from app.dependencies import get_stock_manager
from app.integrations.stock_manager import StockManager

router = APIRouter(tags=["health"])

@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "Variant Inventory Sync"}

@router.get("/health/sync")
async def sync_health(manager: StockManager = Depends(get_stock_manager)):
    """Event and per-sibling outcome counts, plus the most recent failures"""
    return manager.get_metrics()
