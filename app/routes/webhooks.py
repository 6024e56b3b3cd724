import base64
import hashlib
import hmac
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from app.core.enums import SyncStatus
from app.dependencies import get_stock_manager, get_webhook_secret
from app.integrations.stock_manager import StockManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


async def verify_webhook_signature(request: Request, webhook_secret: str = Depends(get_webhook_secret)):
    """Verify the X-Shopify-Hmac-Sha256 header when a webhook secret is configured"""
    if not webhook_secret:
        return

    signature = request.headers.get("X-Shopify-Hmac-Sha256")
    if not signature:
        raise HTTPException(status_code=401, detail="No signature provided")

    body = await request.body()
    expected_signature = base64.b64encode(
        hmac.new(webhook_secret.encode(), body, hashlib.sha256).digest()
    ).decode()

    if not hmac.compare_digest(signature, expected_signature):
        raise HTTPException(status_code=401, detail="Invalid signature")


@router.post("/webhook/inventory")
@router.post("/webhook")
async def inventory_webhook(
    request: Request,
    manager: StockManager = Depends(get_stock_manager),
    _: None = Depends(verify_webhook_signature)
):
    """Receives inventory_levels/update and copies the new quantity to sibling variants"""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(
            status_code=400,
            content={"status": SyncStatus.INVALID.value, "detail": "Body is not valid JSON"},
        )

    try:
        result = await manager.process_inventory_update(payload)
    except Exception as e:
        logger.error(f"Error syncing inventory: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"status": SyncStatus.FAILED.value, "detail": "Error syncing inventory"},
        )

    return JSONResponse(status_code=result.http_status, content=result.to_response())
