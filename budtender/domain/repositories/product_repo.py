# budtender/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Optional, List
import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError
from budtender.core.errors import UpstreamDataError
from budtender.domain.models.product import Product

logger = logging.getLogger(__name__)


class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Documents are written wholesale by the catalog import and carry a tenantId.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    async def _find(self, query: dict, limit: int = 0) -> List[Product]:
        try:
            cursor = self.col.find(query, {"_id": 0}, limit=limit)
            docs = [doc async for doc in cursor]
        except PyMongoError as e:
            raise UpstreamDataError(f"Product store query failed: {e}") from e
        try:
            return [Product.model_validate(d) for d in docs]
        except ValidationError as e:
            raise UpstreamDataError(f"Malformed product record: {e}") from e

    async def list_for_tenant(self, tenant_id: str) -> List[Product]:
        """All products for the tenant in store order. Eligibility is applied by the caller."""
        products = await self._find({"tenantId": tenant_id})
        logger.debug(f"Loaded {len(products)} products for tenant={tenant_id}")
        return products

    async def list_sample(self, tenant_id: Optional[str] = None, limit: int = 50) -> List[Product]:
        query = {"tenantId": tenant_id} if tenant_id else {}
        return await self._find(query, limit=limit)
