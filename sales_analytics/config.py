"""
Service configuration, read from the environment (prefix SALES_ANALYTICS_)
and an optional .env file.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SALES_ANALYTICS_",
        env_file=".env",
        extra="ignore",
    )

    APP_NAME: str = "Seller Sales Analytics"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # load the sample dataset into the store when the API starts
    SEED_ON_STARTUP: bool = True

    # default length cap for each seller's top_products
    TOP_PRODUCTS_LIMIT: int = 10

    @field_validator("TOP_PRODUCTS_LIMIT")
    @classmethod
    def _positive_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("TOP_PRODUCTS_LIMIT must be at least 1")
        return v


settings = Settings()
