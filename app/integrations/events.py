"""
Purpose: Defines the data structures that flow through the variant sync pipeline.
Contents:
InventoryUpdateEvent (Pydantic Model): The inbound "inventory level changed" notification for one inventory item at
one location. IDs arrive either as legacy numeric IDs (Shopify webhooks) or GIDs and are exposed normalised as GIDs.
VariantFamily / VariantMember: A product and the inventory items of all its variants, as read from Shopify for this request.
SyncOutcome / SyncBatchResult: Per-sibling results of a propagation, and their aggregate.
SyncResult: Terminal record for one event, mapped to an HTTP status by the webhook route.
"""

from typing import List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from app.core.enums import ErrorKind, ShopifyResource, SyncStatus
from app.core.utils import to_gid


class InventoryUpdateEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    inventory_item_id: Union[StrictStr, StrictInt]
    location_id: Union[StrictStr, StrictInt]
    available: StrictInt

    @field_validator("inventory_item_id", "location_id")
    @classmethod
    def _id_not_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be empty")
        return value

    @property
    def inventory_item_gid(self) -> str:
        return to_gid(ShopifyResource.INVENTORY_ITEM, self.inventory_item_id)

    @property
    def location_gid(self) -> str:
        return to_gid(ShopifyResource.LOCATION, self.location_id)


class VariantMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant_id: str
    inventory_item_id: str


class VariantFamily(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    members: Tuple[VariantMember, ...] = ()

    @classmethod
    def from_members(cls, product_id: str, members: List[VariantMember]) -> "VariantFamily":
        """Builds a family, dropping repeated inventory items but keeping upstream order."""
        seen = set()
        unique = []
        for member in members:
            if member.inventory_item_id in seen:
                continue
            seen.add(member.inventory_item_id)
            unique.append(member)
        return cls(product_id=product_id, members=tuple(unique))

    @property
    def inventory_item_ids(self) -> List[str]:
        return [m.inventory_item_id for m in self.members]


class SyncOutcome(BaseModel):
    inventory_item_id: str
    ok: bool
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    user_errors: List[dict] = Field(default_factory=list)


class SyncBatchResult(BaseModel):
    attempted: int = 0
    succeeded: List[str] = Field(default_factory=list)
    failed: List[SyncOutcome] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: List[SyncOutcome]) -> "SyncBatchResult":
        return cls(
            attempted=len(outcomes),
            succeeded=[o.inventory_item_id for o in outcomes if o.ok],
            failed=[o for o in outcomes if not o.ok],
        )


class SyncResult(BaseModel):
    status: SyncStatus
    inventory_item_id: Optional[str] = None
    location_id: Optional[str] = None
    product_id: Optional[str] = None
    batch: Optional[SyncBatchResult] = None
    error: Optional[str] = None

    @property
    def http_status(self) -> int:
        return self.status.http_status

    def to_response(self) -> dict:
        """Body returned to the webhook caller"""
        body = {"status": self.status.value}
        if self.batch is not None:
            body.update({
                "attempted": self.batch.attempted,
                "succeeded": len(self.batch.succeeded),
                "failed": len(self.batch.failed),
            })
        if self.error:
            body["detail"] = self.error
        return body
