"""
Pytest configuration and shared fixtures for the budtender service tests.
"""
import json
import os
from typing import Any, AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient

# Settings are read at import time by budtender.main: provide the required ones first
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB", "budtender_test")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from budtender.domain.models.product import Product
from budtender.domain.repositories.tenant_repo import (
    DEFAULT_TENANTS_FILE, TenantRepo, load_tenant_registry,
)
from budtender.domain.services.llm_svc import parse_reply


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

def make_product(id: str, **overrides) -> Product:
    """Eligible product unless overridden."""
    data = {
        "tenantId": "ch",
        "id": id,
        "name": f"Product {id}",
        "brand": "TestBrand",
        "category": "Flower",
        "price": 30.0,
        "isCannabis": True,
        "isAvailableOnline": True,
        "inStock": 5,
    }
    data.update(overrides)
    return Product.model_validate(data)


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def example_catalog() -> list[Product]:
    """The two-product catalog used in the end-to-end examples."""
    return [
        make_product("a", category="Flower", price=20, thcPercent=15, inStock=5),
        make_product("b", category="Vape", price=60, thcPercent=90, inStock=3),
    ]


@pytest.fixture
def mixed_catalog() -> list[Product]:
    """Catalog with every bucket, an unbucketed item and ineligible records."""
    return [
        make_product("f1", category="Flower", price=20, thcPercent=18, strain="Blue Dream", type="hybrid"),
        make_product("v1", category="Cartridge 1000mg", price=56, thcPercent=94.1),
        make_product("e1", category="Edibles", price=18, thcPercent=None),
        make_product("p1", category="Pre-Rolls", price=12, thcPercent=22),
        make_product("r1", category="Live Rosin", price=70, thcPercent=75),
        make_product("x1", category="Accessories", price=9, isCannabis=False),
        make_product("t1", category="Topicals", price=25),
        make_product("f2", category="Flower", price=45, thcPercent=31),
        make_product("oos", category="Flower", price=15, inStock=0),
        make_product("offline", category="Flower", price=15, isAvailableOnline=False),
    ]


# ============================================================================
# Fakes for external collaborators
# ============================================================================

class FakeProducts:
    """In-memory stand-in for ProductRepo."""

    def __init__(self, products: list[Product], error: Optional[Exception] = None):
        self.products = list(products)
        self.error = error
        self.calls = 0

    async def list_for_tenant(self, tenant_id: str) -> list[Product]:
        self.calls += 1
        if self.error:
            raise self.error
        return [p for p in self.products if p.tenant_id == tenant_id]

    async def list_sample(self, tenant_id: Optional[str] = None, limit: int = 50) -> list[Product]:
        self.calls += 1
        items = [p for p in self.products if tenant_id is None or p.tenant_id == tenant_id]
        return items[:limit]


class FakeLLM:
    """
    Scripted LLM gateway. `reply` is a dict (serialized to JSON) or a raw string,
    run through the real parser so protocol errors behave like production.
    """

    def __init__(self, reply: Any = None, topic_answer: str = "YES"):
        self.reply = reply if reply is not None else {"message": "Here you go", "recommendations": []}
        self.topic_answer = topic_answer
        self.json_calls: list[list[dict]] = []
        self.classify_calls: list[list[dict]] = []

    async def complete_json(self, messages: list[dict]):
        self.json_calls.append(messages)
        content = self.reply if isinstance(self.reply, str) else json.dumps(self.reply)
        return parse_reply(content)

    async def classify(self, messages: list[dict]) -> str:
        self.classify_calls.append(messages)
        return self.topic_answer


@pytest.fixture
def tenant_registry():
    return load_tenant_registry(DEFAULT_TENANTS_FILE)


@pytest.fixture
def tenants(tenant_registry) -> TenantRepo:
    return TenantRepo(tenant_registry, redis=None)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_products(mixed_catalog) -> FakeProducts:
    return FakeProducts(mixed_catalog)


# ============================================================================
# Fixtures: API client
# ============================================================================

@pytest.fixture
async def client(tenants, fake_products, fake_llm) -> AsyncGenerator[AsyncClient, None]:
    """ASGI client with the store, tenant lookup and LLM replaced by fakes (no lifespan)."""
    from budtender.main import app
    from budtender.api import deps

    app.dependency_overrides[deps.tenant_repo] = lambda: tenants
    app.dependency_overrides[deps.product_repo] = lambda: fake_products
    app.dependency_overrides[deps.llm_gateway] = lambda: fake_llm
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
