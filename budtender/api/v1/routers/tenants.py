from fastapi import APIRouter, Depends
import logging

from budtender.api.deps import tenant_repo
from budtender.core.errors import UnknownTenantError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tenants"])


@router.get("/tenant/{tenant_id}/config")
async def tenant_config(tenant_id: str, tenants = Depends(tenant_repo)):
    """Branding for the widget (name, colors, menu link). Persona text is never exposed."""
    cfg = await tenants.get(tenant_id)
    if cfg is None:
        raise UnknownTenantError(tenant_id)
    return cfg.public()


@router.get("/tenants")
async def list_tenants(tenants = Depends(tenant_repo)):
    out = []
    for tid in await tenants.list_ids():
        cfg = await tenants.get(tid)
        if cfg:
            out.append({"tenantId": tid, "name": cfg.name, "displayName": cfg.display_name})
    return {"tenants": out}
