"""
Tests for the Mongo product repository against an in-memory collection.
"""
import pytest
from pymongo.errors import ServerSelectionTimeoutError

from budtender.core.errors import UpstreamDataError
from budtender.domain.repositories.product_repo import ProductRepo


class _Cursor:
    def __init__(self, docs, error=None):
        self.docs = docs
        self.error = error

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        if self.error:
            raise self.error
        for d in self.docs:
            yield d


class FakeCollection:
    def __init__(self, docs, error=None):
        self.docs = docs
        self.error = error
        self.queries = []

    def find(self, query, projection=None, limit=0):
        self.queries.append((query, projection, limit))
        docs = [d for d in self.docs if all(d.get(k) == v for k, v in query.items())]
        return _Cursor(docs[:limit] if limit else docs, self.error)


def _repo(docs, error=None):
    col = FakeCollection(docs, error)
    return ProductRepo({"products": col}), col


DOC = {
    "tenantId": "ch", "id": 25286917, "name": "Pineapple Express", "brand": "ROVE",
    "category": "Cartridge 1000mg", "price": 56, "isCannabis": True, "isAvailableOnline": True,
    "inStock": 3, "thcPercent": 94.1, "dutchieUrl": "https://shop/pe",
}


async def test_list_for_tenant_filters_and_parses():
    repo, col = _repo([DOC, {**DOC, "tenantId": "other", "id": "x"}])
    products = await repo.list_for_tenant("ch")
    assert [p.id for p in products] == ["25286917"]
    assert products[0].shop_url == "https://shop/pe"
    assert products[0].is_eligible
    assert col.queries[0][0] == {"tenantId": "ch"}
    assert col.queries[0][1] == {"_id": 0}


async def test_list_sample_limit():
    repo, _ = _repo([{**DOC, "id": str(i)} for i in range(10)])
    assert len(await repo.list_sample(limit=4)) == 4


async def test_malformed_record_is_upstream_error():
    repo, _ = _repo([{**DOC, "name": None}])
    with pytest.raises(UpstreamDataError):
        await repo.list_for_tenant("ch")


async def test_store_failure_is_upstream_error():
    repo, _ = _repo([DOC], error=ServerSelectionTimeoutError("no servers"))
    with pytest.raises(UpstreamDataError):
        await repo.list_for_tenant("ch")
