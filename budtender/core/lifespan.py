# budtender/core/lifespan.py
from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from budtender.db import mongo, redis as r
from budtender.core.config import get_settings
from budtender.domain.repositories.tenant_repo import get_tenant_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Tenant registry: a broken file must stop the deploy
    tenants = get_tenant_registry()
    logger.info(f"✅ {len(tenants)} tenants registered: {sorted(tenants)}")

    # Mongo is required (product store)
    try:
        await mongo.connect()
        logger.info("✅ Mongo ready")
    except Exception as e:
        logger.error(f"❌ Mongo connection failed: {e}")
        raise

    # Redis is optional (tenant overlay)
    if settings.REDIS_URL:
        await r.connect()
    else:
        logger.info("⚠️ No REDIS_URL provided, skipping Redis connection")

    # Application runs
    yield

    # --- Shutdown ---
    try:
        await r.disconnect()
    except Exception as e:
        logger.warning(f"Redis disconnect failed: {e}")

    try:
        await mongo.disconnect()
        logger.info("🔌 Mongo disconnected")
    except Exception as e:
        logger.warning(f"Mongo disconnect failed: {e}")
