"""
Resolves an inventory item to the full set of sibling variants of its product.

Shopify keeps inventory items, variants and products in separate ID spaces, so
this takes two reads: inventory item -> (variant, product), then
product -> variants -> inventory items.
"""

import logging
from typing import Any, Dict, List

from app.core.exceptions import ResolutionError, ShopifyAPIError
from app.integrations.events import VariantFamily, VariantMember

logger = logging.getLogger(__name__)

ITEM_NOT_FOUND = "item not found"
PAGINATION_OVERFLOW = "pagination overflow"
UPSTREAM_ERROR = "upstream error"
MALFORMED_RESPONSE = "malformed response"


class VariantResolver:
    def __init__(self, client, page_size: int = 50):
        self.client = client
        self.page_size = page_size

    async def resolve_family(self, inventory_item_id: str) -> VariantFamily:
        """
        Raises:
            ResolutionError: no owning variant/product, lookup failed, more
            variants than one page holds, or an unexpected response shape
        """
        product_id = await self._resolve_product_id(inventory_item_id)
        members = await self._list_members(inventory_item_id, product_id)
        family = VariantFamily.from_members(product_id, members)
        logger.debug(f"Resolved {inventory_item_id} to product {product_id} with {len(family.members)} variants")
        return family

    async def _resolve_product_id(self, inventory_item_id: str) -> str:
        try:
            item = await self.client.get_inventory_item_variant(inventory_item_id)
        except ShopifyAPIError as e:
            raise ResolutionError(UPSTREAM_ERROR, inventory_item_id, str(e)) from e

        if item is None:
            raise ResolutionError(ITEM_NOT_FOUND, inventory_item_id)
        if not isinstance(item, dict):
            raise ResolutionError(MALFORMED_RESPONSE, inventory_item_id, "inventoryItem is not an object")

        variant = item.get("variant")
        if not variant:
            raise ResolutionError(ITEM_NOT_FOUND, inventory_item_id, "no variant")
        product = variant.get("product") if isinstance(variant, dict) else None
        if not product:
            raise ResolutionError(ITEM_NOT_FOUND, inventory_item_id, "no product")
        product_id = product.get("id") if isinstance(product, dict) else None
        if not product_id:
            raise ResolutionError(MALFORMED_RESPONSE, inventory_item_id, "product without id")
        return product_id

    async def _list_members(self, inventory_item_id: str, product_id: str) -> List[VariantMember]:
        try:
            product = await self.client.get_product_variants(product_id, first=self.page_size)
        except ShopifyAPIError as e:
            raise ResolutionError(UPSTREAM_ERROR, inventory_item_id, str(e)) from e

        if product is None:
            raise ResolutionError(ITEM_NOT_FOUND, inventory_item_id, f"product {product_id} not found")

        variants = product.get("variants") if isinstance(product, dict) else None
        if not isinstance(variants, dict) or not isinstance(variants.get("nodes"), list):
            raise ResolutionError(MALFORMED_RESPONSE, inventory_item_id, "variants missing")

        page_info = variants.get("pageInfo") or {}
        if not isinstance(page_info, dict):
            raise ResolutionError(MALFORMED_RESPONSE, inventory_item_id, "pageInfo is not an object")

        # Truncating would leave the remaining siblings silently out of sync
        if page_info.get("hasNextPage"):
            raise ResolutionError(
                PAGINATION_OVERFLOW,
                inventory_item_id,
                f"product {product_id} has more than {self.page_size} variants",
            )

        return [self._to_member(inventory_item_id, node) for node in variants["nodes"]]

    @staticmethod
    def _to_member(inventory_item_id: str, node: Dict[str, Any]) -> VariantMember:
        if not isinstance(node, dict):
            raise ResolutionError(MALFORMED_RESPONSE, inventory_item_id, "variant node is not an object")
        variant_id = node.get("id")
        item = node.get("inventoryItem") or {}
        item_id = item.get("id") if isinstance(item, dict) else None
        if not variant_id or not item_id:
            raise ResolutionError(MALFORMED_RESPONSE, inventory_item_id, f"variant {variant_id} has no inventory item")
        return VariantMember(variant_id=variant_id, inventory_item_id=item_id)
