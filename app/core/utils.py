# app/core/utils.py
from typing import Union

from app.core.enums import ShopifyResource

GID_PREFIX = "gid://shopify/"


def to_gid(resource: ShopifyResource, value: Union[str, int]) -> str:
    """
    Normalise a Shopify identifier to its GraphQL GID.

    Webhooks deliver legacy numeric IDs (e.g. 808950810) while the Admin
    GraphQL API expects gid://shopify/InventoryItem/808950810. Values that are
    already GIDs pass through untouched.
    """
    text = str(value).strip()
    if text.startswith(GID_PREFIX):
        return text
    return f"{GID_PREFIX}{resource.value}/{text}"


def normalise_shop_domain(shop_url: str) -> str:
    """Accepts 'my-store', 'my-store.myshopify.com' or a full https URL."""
    domain = shop_url.strip().rstrip('/')
    for scheme in ("https://", "http://"):
        if domain.startswith(scheme):
            domain = domain[len(scheme):]
    if "." not in domain:
        domain = f"{domain}.myshopify.com"
    return domain
