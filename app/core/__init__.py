"""
Core module exports.
"""
from .enums import (
    SyncStatus,
    ErrorKind,
    ShopifyResource
)

from .exceptions import (
    SyncServiceError,
    ValidationError,
    ResolutionError,
    PropagationError,
    ShopifyAPIError,
    ShopifyGraphQLError,
    TransientUpstreamError,
    UpstreamTimeoutError
)

from .utils import (
    to_gid,
    normalise_shop_domain
)
