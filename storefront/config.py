from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Storefront API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # Database settings
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_SERVER: str = "db"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "storefront"
    DATABASE_URL: str = f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_SERVER}:{POSTGRES_PORT}/{POSTGRES_DB}"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_ECHO: bool = False

    # Checkout
    TAX_RATE: Decimal = Decimal("0.08")
    ORDER_NUMBER_PREFIX: str = "ORD-"
    ORDER_NUMBER_WIDTH: int = 6

    # Catalogue
    LOW_STOCK_THRESHOLD: int = 5
    DEFAULT_PRODUCT_IMAGE: str = "📦"

    # CORS
    BACKEND_CORS_ORIGINS: list = ["*"]  # Change in production

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

@lru_cache()
def get_settings() -> Settings:
    return Settings()
