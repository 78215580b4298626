# budtender/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from budtender.api.deps import product_repo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


@router.get("/products", summary="List raw catalog records (debugging the catalog import)")
async def list_products(
    tenant_id: Optional[str] = Query(None, alias="tenantId", description="Restrict to one tenant"),
    limit: int = Query(50, ge=1, le=200),
    products = Depends(product_repo),
):
    items = await products.list_sample(tenant_id=tenant_id, limit=limit)
    logger.info(f"Response: list_products tenant={tenant_id} count={len(items)}")
    return {"products": [p.model_dump(by_alias=True) for p in items], "count": len(items)}
