# budtender/domain/repositories/tenant_repo.py

from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional
import json
import logging
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError
from budtender.core.config import get_settings
from budtender.domain.models.tenant import TenantConfig

logger = logging.getLogger(__name__)

DEFAULT_TENANTS_FILE = Path(__file__).resolve().parents[2] / "core" / "tenants.json"
KEY_PREFIX = "tenant:"


def load_tenant_registry(path: str | Path) -> Dict[str, TenantConfig]:
    """
    Read {tenant_id: {name, displayName, persona, tone, colors, menuUrl}} from JSON.
    A broken file is a startup error, not something to paper over.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Tenant registry {path} must be a JSON object keyed by tenant id")
    registry = {tid: TenantConfig.model_validate({**cfg, "tenantId": tid}) for tid, cfg in raw.items()}
    logger.info(f"Loaded {len(registry)} tenants from {path}")
    return registry


@lru_cache
def get_tenant_registry() -> Dict[str, TenantConfig]:
    settings = get_settings()
    return load_tenant_registry(settings.TENANTS_FILE or DEFAULT_TENANTS_FILE)


class TenantRepo:
    """
    Tenant configuration lookup.
    Redis key 'tenant:<id>' (JSON) wins when Redis is configured, so a store can
    be added or re-voiced without a deploy; the JSON registry is the baseline.
    """

    def __init__(self, registry: Dict[str, TenantConfig], redis: Optional[Redis] = None):
        self.registry = registry
        self.redis = redis

    async def _from_redis(self, tenant_id: str) -> Optional[TenantConfig]:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(f"{KEY_PREFIX}{tenant_id}")
        except RedisError as e:
            logger.warning(f"Redis tenant lookup failed for {tenant_id}, using registry: {e}")
            return None
        if not raw:
            return None
        try:
            return TenantConfig.model_validate({**json.loads(raw), "tenantId": tenant_id})
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.error(f"Ignoring malformed Redis tenant config for {tenant_id}: {e}")
            return None

    async def get(self, tenant_id: str) -> Optional[TenantConfig]:
        return await self._from_redis(tenant_id) or self.registry.get(tenant_id)

    async def exists(self, tenant_id: str) -> bool:
        return await self.get(tenant_id) is not None

    async def list_ids(self) -> List[str]:
        ids = set(self.registry)
        if self.redis is not None:
            try:
                async for key in self.redis.scan_iter(match=f"{KEY_PREFIX}*"):
                    ids.add(key[len(KEY_PREFIX):])
            except RedisError as e:
                logger.warning(f"Redis tenant scan failed, listing registry only: {e}")
        return sorted(ids)
