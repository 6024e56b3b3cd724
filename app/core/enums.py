"""
Shared enums and constants used across the application.
"""

from enum import Enum


class SyncStatus(str, Enum):
    """Terminal status of one inbound inventory event"""
    INVALID = "invalid"
    DEDUPED = "deduped"
    SYNCED = "synced"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def http_status(self) -> int:
        if self is SyncStatus.INVALID:
            return 400
        if self is SyncStatus.FAILED:
            return 500
        return 200


class ErrorKind(str, Enum):
    """Why a single sibling quantity write failed"""
    USER_ERRORS = "user_errors"      # HTTP 200 but userErrors was non-empty
    TRANSPORT = "transport"          # Network, non-2xx, or top-level GraphQL errors
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"    # 429/5xx/THROTTLED still failing after retries


class ShopifyResource(str, Enum):
    """GID resource types used when normalising webhook IDs"""
    INVENTORY_ITEM = "InventoryItem"
    LOCATION = "Location"
    PRODUCT = "Product"
    PRODUCT_VARIANT = "ProductVariant"


# Inventory state written by the quantity mutation
INVENTORY_QUANTITY_NAME = "available"
INVENTORY_ADJUSTMENT_REASON = "correction"
