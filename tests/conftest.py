# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings, get_settings
from app.integrations.dedup import DedupCache
from app.integrations.limiter import ConcurrencyLimiter
from app.integrations.propagation import PropagationEngine
from app.integrations.stock_manager import StockManager
from app.integrations.variant_resolver import VariantResolver
from app.main import app
from tests.mocks import MockShopifyClient


class FakeClock:
    """Manually advanced stand-in for time.monotonic"""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        SHOPIFY_SHOP_URL="test-store.myshopify.com",
        SHOPIFY_ADMIN_API_ACCESS_TOKEN="test_token",
        SHOPIFY_API_VERSION="2024-07",
        SHOPIFY_WEBHOOK_SECRET="",
    )

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def mock_shopify_client():
    """Shop with one three-variant product: I1, I2, I3"""
    client = MockShopifyClient()
    client.add_product("P1", ["I1", "I2", "I3"])
    return client

@pytest.fixture
def limiter():
    return ConcurrencyLimiter(capacity=2, call_timeout=5.0)

@pytest.fixture
def dedup_cache(clock):
    return DedupCache(ttl_seconds=30.0, clock=clock)

@pytest.fixture
def stock_manager(mock_shopify_client, limiter, dedup_cache):
    return StockManager(
        resolver=VariantResolver(mock_shopify_client, page_size=50),
        engine=PropagationEngine(mock_shopify_client, limiter),
        dedup_cache=dedup_cache,
    )

@pytest.fixture
def test_client(settings, stock_manager):
    """Provide a test client wired to the mock shop, without running the lifespan"""
    app.dependency_overrides[get_settings] = lambda: settings
    app.state.stock_manager = stock_manager
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
    app.state.stock_manager = None
