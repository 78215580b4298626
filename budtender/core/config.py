from functools import lru_cache
from typing import Literal, Optional
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "BudtenderAI"
    DEBUG: bool # ✅ declared
    GIT_SHA: str = "unknown"

    # Logging
    LOG_LEVEL: Optional[str] = None          # overrides DEBUG (e.g. "WARNING")
    LOG_COLOR: Optional[bool] = None         # None = colour only on a terminal
    LOG_QUIET: str = "pymongo,httpx,httpcore,openai"  # loggers held at WARNING (CSV)

    # CORS: storefront origins embedding the widget (CSV)
    ALLOWED_ORIGINS: str = ""

    # Mongo (product store)
    MONGO_URI: str # ✅ declared
    MONGO_DB: str # ✅ declared
    MONGO_TLS: bool = True
    products_collection: str = "products"

    # Redis (optional tenant config overlay)
    REDIS_URL: str = ""

    # Tenants registry (JSON). None = bundled budtender/core/tenants.json
    TENANTS_FILE: Optional[str] = None

    # OpenAI
    OPENAI_API_KEY: str # ✅ declared
    OPENAI_CHAT_MODEL: str = "gpt-4o-mini"
    OPENAI_CLASSIFIER_MODEL: str = "gpt-4o-mini"
    openai_timeout_s: int = 30  # seconds

    # Pipeline tunables
    max_candidates: Optional[int] = None     # cap on the numbered list sent to the LLM (None = all)
    chat_bucket_limit: Optional[int] = 50    # per-category cap for the chat variant
    fallback_limit: int = 20                 # absolute fallback slice when filtering leaves nothing
    history_window: int = 6                  # chat turns forwarded to the LLM
    topic_min_length: int = 5                # shorter messages skip the topic classifier
    use_ordinal_ids: bool = True             # numbered references instead of catalog ids

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.DEBUG else "INFO"

    @property
    def quiet_loggers(self) -> list[str]:
        return [n.strip() for n in self.LOG_QUIET.split(",") if n.strip()]

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
