# budtender/api/deps.py
from fastapi import Depends
from budtender.core.config import get_settings
from budtender.db.mongo import get_db
from budtender.db.redis import get_redis
from budtender.domain.repositories.product_repo import ProductRepo
from budtender.domain.repositories.tenant_repo import TenantRepo, get_tenant_registry
from budtender.domain.services.llm_svc import get_llm_gateway
from budtender.domain.services.pipeline_svc import PipelineOptions

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    # Returns the MongoDB database instance (async)
    return db

# Dependency for injecting the Redis client into endpoints/services
def redis_dep():
    return get_redis()

def product_repo(db = Depends(mongo_db)) -> ProductRepo:
    return ProductRepo(db, collection_name=get_settings().products_collection)

def tenant_repo(redis = Depends(redis_dep)) -> TenantRepo:
    return TenantRepo(get_tenant_registry(), redis)

def llm_gateway():
    return get_llm_gateway()

def pipeline_options() -> PipelineOptions:
    return PipelineOptions.from_settings(get_settings())
