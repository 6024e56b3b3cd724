# app.services.shopify.client

import json
import logging
import httpx
from typing import Dict, List, Optional, Any

from app.core.config import get_settings
from app.core.enums import INVENTORY_ADJUSTMENT_REASON, INVENTORY_QUANTITY_NAME
from app.core.exceptions import (
    ShopifyAPIError,
    ShopifyGraphQLError,
    TransientUpstreamError,
    UpstreamTimeoutError,
)
from app.core.utils import normalise_shop_domain

logger = logging.getLogger(__name__)


INVENTORY_ITEM_VARIANT_QUERY = """
query inventoryItemVariant($id: ID!) {
  inventoryItem(id: $id) {
    id
    variant {
      id
      product {
        id
      }
    }
  }
}
"""

PRODUCT_VARIANTS_QUERY = """
query productVariants($id: ID!, $first: Int!) {
  product(id: $id) {
    id
    variants(first: $first) {
      pageInfo {
        hasNextPage
      }
      nodes {
        id
        inventoryItem {
          id
        }
      }
    }
  }
}
"""

INVENTORY_SET_QUANTITIES_MUTATION = """
mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {
  inventorySetQuantities(input: $input) {
    inventoryAdjustmentGroup {
      reason
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""


class ShopifyGraphQLClient:
    """
    Async client for the Shopify Admin GraphQL API, limited to what variant
    inventory sync needs:

      # READ operations:
      - get_inventory_item_variant()   inventory item -> variant -> product
      - get_product_variants()         product -> variants -> inventory items

      # WRITE operations:
      - set_inventory_quantity()       inventorySetQuantities, one item at one location

    Error classification (see app.core.exceptions):
      - 429 / 5xx / network / THROTTLED -> TransientUpstreamError (timeouts -> UpstreamTimeoutError)
      - other non-2xx, undecodable body -> ShopifyAPIError
      - top-level GraphQL errors        -> ShopifyGraphQLError
      - mutation userErrors are returned, not raised; callers decide what they mean
    """

    def __init__(
        self,
        shop_url: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        shop_url = shop_url or settings.SHOPIFY_SHOP_URL
        self.admin_api_token = access_token or settings.SHOPIFY_ADMIN_API_ACCESS_TOKEN
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.timeout = timeout if timeout is not None else settings.SHOPIFY_TIMEOUT_SECONDS
        self._transport = transport

        if not shop_url or not self.admin_api_token:
            raise ValueError(
                "SHOPIFY_SHOP_URL and SHOPIFY_ADMIN_API_ACCESS_TOKEN must be set in .env or as environment variables."
            )

        self.store_domain = normalise_shop_domain(shop_url)
        self.graphql_url = f"https://{self.store_domain}/admin/api/{self.api_version}/graphql.json"
        self.headers = {
            "X-Shopify-Access-Token": self.admin_api_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        # Updated from extensions.cost after each call
        self.max_available_points: Optional[float] = None
        self.currently_available_points: Optional[float] = None
        self.restore_rate: Optional[float] = None

        logger.info(f"ShopifyGraphQLClient initialized for {self.store_domain} (API version {self.api_version})")

    # --- Meta/Infrastructure ---

    def _update_throttle_status(self, extensions: Optional[Dict[str, Any]]):
        if not extensions or "cost" not in extensions:
            return
        throttle = extensions["cost"].get("throttleStatus") or {}
        try:
            self.max_available_points = float(throttle["maximumAvailable"])
            self.currently_available_points = float(throttle["currentlyAvailable"])
            self.restore_rate = float(throttle["restoreRate"])
        except (KeyError, TypeError, ValueError):
            return
        logger.debug(
            f"Throttle status: available={self.currently_available_points}, "
            f"max={self.max_available_points}, restore={self.restore_rate}"
        )

    @staticmethod
    def _retry_after(response: httpx.Response) -> Optional[float]:
        header = response.headers.get("Retry-After")
        if not header:
            return None
        try:
            return float(header)
        except ValueError:
            return None

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST a GraphQL document and return its `data` payload.

        Raises:
            TransientUpstreamError: rate limited, 5xx, network failure or THROTTLED
            ShopifyGraphQLError: top-level `errors` in the response
            ShopifyAPIError: any other non-2xx or an undecodable body
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.graphql_url, headers=self.headers, json=payload)
        except httpx.TimeoutException as e:
            logger.warning(f"Shopify request timed out: {e}")
            raise UpstreamTimeoutError(f"Request timed out: {e}")
        except httpx.RequestError as e:
            logger.warning(f"Shopify network error: {e}")
            raise TransientUpstreamError(f"Network error: {e}")

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning(f"Shopify returned {response.status_code}: {response.text[:200]}")
            raise TransientUpstreamError(
                f"Shopify returned {response.status_code}",
                status_code=response.status_code,
                retry_after=self._retry_after(response),
            )
        if response.status_code < 200 or response.status_code >= 300:
            logger.error(f"Shopify API error {response.status_code}: {response.text[:500]}")
            raise ShopifyAPIError(
                f"Request failed ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            response_data = response.json()
        except json.JSONDecodeError:
            logger.error(f"Failed to decode JSON response. Content: {response.text[:500]}")
            raise ShopifyAPIError("Failed to decode JSON response", status_code=response.status_code)
        if not isinstance(response_data, dict):
            raise ShopifyAPIError("Unexpected response body", status_code=response.status_code)

        self._update_throttle_status(response_data.get("extensions"))

        errors = response_data.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            errors = [err if isinstance(err, dict) else {"message": str(err)} for err in errors]
            if any((err.get("extensions") or {}).get("code") == "THROTTLED" for err in errors):
                raise TransientUpstreamError("Throttled by Shopify", status_code=response.status_code, throttled=True)
            raise ShopifyGraphQLError(errors)

        data = response_data.get("data") or {}
        if not isinstance(data, dict):
            raise ShopifyAPIError("Response data is not an object", status_code=response.status_code)
        return data

    # --- READ operations ---

    async def get_inventory_item_variant(self, inventory_item_gid: str) -> Optional[Dict[str, Any]]:
        """Returns the inventoryItem node ({id, variant: {id, product: {id}}}) or None."""
        data = await self.execute(INVENTORY_ITEM_VARIANT_QUERY, {"id": inventory_item_gid})
        return data.get("inventoryItem")

    async def get_product_variants(self, product_gid: str, first: int = 50) -> Optional[Dict[str, Any]]:
        """Returns the product node with its first `first` variants and pageInfo, or None."""
        data = await self.execute(PRODUCT_VARIANTS_QUERY, {"id": product_gid, "first": first})
        return data.get("product")

    # --- WRITE operations ---

    async def set_inventory_quantity(self, inventory_item_gid: str, location_gid: str, quantity: int) -> List[Dict[str, Any]]:
        """
        Set the available quantity of one inventory item at one location.

        Uses reason "correction" and skips the compare-quantity check, so
        repeating the same call leaves the same end state.

        Returns:
            List of userErrors ({field, message, code}); empty on success
        """
        variables = {
            "input": {
                "name": INVENTORY_QUANTITY_NAME,
                "reason": INVENTORY_ADJUSTMENT_REASON,
                "ignoreCompareQuantity": True,
                "quantities": [
                    {
                        "inventoryItemId": inventory_item_gid,
                        "locationId": location_gid,
                        "quantity": quantity,
                    }
                ],
            }
        }
        data = await self.execute(INVENTORY_SET_QUANTITIES_MUTATION, variables)
        result = data.get("inventorySetQuantities")
        if not isinstance(result, dict):
            raise ShopifyAPIError("inventorySetQuantities missing from response")
        return list(result.get("userErrors") or [])
