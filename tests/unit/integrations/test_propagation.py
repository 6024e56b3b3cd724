import asyncio
import pytest

from app.core.enums import ErrorKind
from app.core.exceptions import ShopifyGraphQLError, TransientUpstreamError
from app.integrations.events import VariantFamily, VariantMember
from app.integrations.limiter import ConcurrencyLimiter
from app.integrations.propagation import PropagationEngine
from tests.mocks import MockShopifyClient, item_gid, location_gid


def make_family(*raw_ids) -> VariantFamily:
    return VariantFamily.from_members(
        "gid://shopify/Product/P1",
        [VariantMember(variant_id=f"gid://shopify/ProductVariant/V-{r}", inventory_item_id=item_gid(r)) for r in raw_ids],
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("k", [1, 2, 3, 7])
async def test_k_variants_yield_k_minus_one_writes(k):
    client = MockShopifyClient()
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))
    raw_ids = [f"I{n}" for n in range(1, k + 1)]

    batch = await engine.propagate(make_family(*raw_ids), item_gid("I1"), location_gid("L1"), 7)

    assert batch.attempted == k - 1
    assert len(client.set_calls) == k - 1
    assert item_gid("I1") not in [call[0] for call in client.set_calls]
    assert batch.failed == []


@pytest.mark.asyncio
async def test_sets_quantity_at_triggering_location():
    client = MockShopifyClient()
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))

    await engine.propagate(make_family("I1", "I2", "I3"), item_gid("I1"), location_gid("L1"), 7)

    assert sorted(client.set_calls) == [
        (item_gid("I2"), location_gid("L1"), 7),
        (item_gid("I3"), location_gid("L1"), 7),
    ]


@pytest.mark.asyncio
async def test_user_errors_fail_only_that_member():
    client = MockShopifyClient()
    client.user_errors[item_gid("I3")] = [{"field": ["input", "quantities"], "message": "Inventory item not stocked"}]
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))

    batch = await engine.propagate(make_family("I1", "I2", "I3"), item_gid("I1"), location_gid("L1"), 7)

    assert batch.attempted == 2
    assert batch.succeeded == [item_gid("I2")]
    assert len(batch.failed) == 1
    failure = batch.failed[0]
    assert failure.inventory_item_id == item_gid("I3")
    assert failure.error_kind == ErrorKind.USER_ERRORS
    assert failure.user_errors[0]["message"] == "Inventory item not stocked"
    assert "Inventory item not stocked" in failure.message


@pytest.mark.asyncio
async def test_every_member_is_attempted_despite_failures():
    client = MockShopifyClient()
    client.set_failures[item_gid("I2")] = ShopifyGraphQLError([{"message": "boom"}])
    client.set_failures[item_gid("I3")] = TransientUpstreamError("Shopify returned 429", status_code=429)
    client.set_failures[item_gid("I4")] = TransientUpstreamError("Network error: reset")
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))

    batch = await engine.propagate(make_family("I1", "I2", "I3", "I4", "I5"), item_gid("I1"), location_gid("L1"), 0)

    assert batch.attempted == 4
    assert len(client.set_calls) == 4
    assert batch.succeeded == [item_gid("I5")]
    kinds = {o.inventory_item_id: o.error_kind for o in batch.failed}
    assert kinds == {
        item_gid("I2"): ErrorKind.TRANSPORT,
        item_gid("I3"): ErrorKind.RATE_LIMITED,
        item_gid("I4"): ErrorKind.TRANSPORT,
    }


@pytest.mark.asyncio
async def test_stalled_call_is_recorded_as_timeout():
    client = MockShopifyClient(delay=1.0)
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2, call_timeout=0.01))

    batch = await engine.propagate(make_family("I1", "I2"), item_gid("I1"), location_gid("L1"), 3)

    assert batch.succeeded == []
    assert batch.failed[0].error_kind == ErrorKind.TIMEOUT


@pytest.mark.asyncio
async def test_unexpected_exception_does_not_abort_batch():
    client = MockShopifyClient()
    client.set_failures[item_gid("I2")] = RuntimeError("bug")
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))

    batch = await engine.propagate(make_family("I1", "I2", "I3"), item_gid("I1"), location_gid("L1"), 3)

    assert batch.succeeded == [item_gid("I3")]
    assert batch.failed[0].error_kind == ErrorKind.TRANSPORT


@pytest.mark.asyncio
async def test_single_variant_product_issues_no_writes():
    client = MockShopifyClient()
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))

    batch = await engine.propagate(make_family("I1"), item_gid("I1"), location_gid("L1"), 5)

    assert batch.attempted == 0
    assert client.set_calls == []


@pytest.mark.asyncio
async def test_concurrency_bounded_by_limiter():
    client = MockShopifyClient(delay=0.01)
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))
    family = make_family(*[f"I{n}" for n in range(1, 10)])

    batch = await engine.propagate(family, item_gid("I1"), location_gid("L1"), 4)

    assert len(batch.succeeded) == 8
    assert client.peak_in_flight == 2


@pytest.mark.asyncio
async def test_repeating_the_same_set_is_idempotent():
    client = MockShopifyClient()
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))
    family = make_family("I1", "I2", "I3")

    await engine.propagate(family, item_gid("I1"), location_gid("L1"), 7)
    first = dict(client.levels)
    await engine.propagate(family, item_gid("I1"), location_gid("L1"), 7)

    assert client.levels == first
    assert client.levels[(item_gid("I2"), location_gid("L1"))] == 7


@pytest.mark.asyncio
async def test_limiter_is_shared_across_concurrent_batches():
    client = MockShopifyClient(delay=0.01)
    engine = PropagationEngine(client, ConcurrencyLimiter(capacity=2))

    await asyncio.gather(
        engine.propagate(make_family("A1", "A2", "A3", "A4"), item_gid("A1"), location_gid("L1"), 1),
        engine.propagate(make_family("B1", "B2", "B3", "B4"), item_gid("B1"), location_gid("L1"), 2),
        engine.propagate(make_family("C1", "C2", "C3"), item_gid("C1"), location_gid("L2"), 3),
    )

    assert len(client.set_calls) == 8
    assert client.peak_in_flight == 2
