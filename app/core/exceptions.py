from typing import List, Optional


class SyncServiceError(Exception):
    """Base exception for all variant sync errors."""
    pass

class ValidationError(SyncServiceError):
    """Raised when an inbound inventory event is missing or has invalid fields."""
    pass

class ResolutionError(SyncServiceError):
    """Raised when an inventory item cannot be resolved to its variant family."""
    def __init__(self, reason: str, inventory_item_id: Optional[str] = None, detail: Optional[str] = None):
        self.reason = reason
        self.inventory_item_id = inventory_item_id
        self.detail = detail
        message = f"Could not resolve {inventory_item_id}: {reason}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)

class PropagationError(SyncServiceError):
    """Raised when setting the quantity of a single sibling fails."""
    def __init__(self, inventory_item_id: str, kind: str, message: str = "", user_errors: Optional[List[dict]] = None):
        self.inventory_item_id = inventory_item_id
        self.kind = kind
        self.user_errors = user_errors or []
        super().__init__(f"{inventory_item_id}: {kind} {message}".strip())

class ShopifyAPIError(SyncServiceError):
    """Raised when Shopify API calls fail at the transport or HTTP level."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

class ShopifyGraphQLError(ShopifyAPIError):
    """Raised when a GraphQL response carries top-level errors."""
    def __init__(self, errors):
        self.errors = errors
        message = "GraphQL query failed with errors:\n"
        for error in errors:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            msg = error.get('message', 'Unknown error')
            path = error.get('path', [])
            message += f"- Message: {msg}, Path: {path}\n"
        super().__init__(message)

class TransientUpstreamError(ShopifyAPIError):
    """Raised on rate limits, 5xx responses, network errors and timeouts."""
    def __init__(self, message: str, status_code: Optional[int] = None, retry_after: Optional[float] = None,
                 throttled: bool = False):
        self.retry_after = retry_after
        self.throttled = throttled
        super().__init__(message, status_code=status_code)

    @property
    def rate_limited(self) -> bool:
        """True for 429, 5xx and GraphQL THROTTLED; False for network failures."""
        if self.throttled:
            return True
        return self.status_code is not None and (self.status_code == 429 or self.status_code >= 500)

class UpstreamTimeoutError(TransientUpstreamError):
    """Raised when a single upstream call exceeds its time budget."""
    pass
