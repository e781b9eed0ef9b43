import os
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    STORE_NAME: str = "AyuStore"
    CURRENCY: str = "INR"

    # Backend. Empty means the storefront runs on the static catalog only.
    API_BASE_URL: str = os.getenv("API_BASE_URL", "")
    HTTP_TIMEOUT: Optional[float] = None

    # Durable "local storage"
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "storefront")
    STORAGE_DIR: Optional[str] = None

    PAGE_SIZE: int = 12
    FREE_DELIVERY_THRESHOLD: float = 500
    DELIVERY_FEE: float = 40
    TAX_RATE: float = 0.0

    SESSION_COOKIE: str = "sid"
    SESSION_CACHE_SIZE: int = 1024
    SESSION_IDLE_SECONDS: float = 3600
    LOG_LEVEL: str = "INFO"


settings = Settings()
