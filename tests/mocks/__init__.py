from .mock_shopify import MockShopifyClient, item_gid, location_gid, product_gid, variant_gid
