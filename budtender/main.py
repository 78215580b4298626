from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from budtender.core.config import get_settings
from budtender.core.errors import register_exception_handlers
from budtender.core.lifespan import lifespan
from budtender.core.logging import configure_logging
from budtender.api.v1.routers.health import router as health_router
from budtender.api.v1.routers.recommend import router as recommend_router
from budtender.api.v1.routers.tenants import router as tenants_router
from budtender.api.v1.routers.products import router as products_router

settings = get_settings()
configure_logging(settings.log_level, color=settings.LOG_COLOR, quiet=settings.quiet_loggers)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
register_exception_handlers(app)

# ------- CORS -------
# The widget is embedded in tenant storefronts: list them in ALLOWED_ORIGINS (CSV).
# Without it every origin is allowed, which is what local widget development needs.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=False,                        # no cookies; keeps "*" legal
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(recommend_router)         # /recommend, /chat
app.include_router(tenants_router)           # widget branding
app.include_router(products_router)          # catalog debugging
