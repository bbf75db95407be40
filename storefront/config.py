"""
Configuration settings for the storefront service.
"""

import logging
import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Commerce backend (Storefront GraphQL API)
    SHOPIFY_DOMAIN: str = os.getenv("SHOPIFY_DOMAIN", "harmony-farm.myshopify.com")
    SHOPIFY_STOREFRONT_TOKEN: str | None = os.getenv("SHOPIFY_STOREFRONT_TOKEN")
    SHOPIFY_API_VERSION: str = os.getenv("SHOPIFY_API_VERSION", "2024-01")
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    CATALOG_PAGE_SIZE: int = int(os.getenv("CATALOG_PAGE_SIZE", "24"))
    COLLECTIONS_PAGE_SIZE: int = int(os.getenv("COLLECTIONS_PAGE_SIZE", "20"))

    # Local pricing
    TAX_RATE: Decimal = Decimal(os.getenv("TAX_RATE", "0.08"))
    FLAT_SHIPPING_RATE: Decimal = Decimal(os.getenv("FLAT_SHIPPING_RATE", "5.99"))
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal(
        os.getenv("FREE_SHIPPING_THRESHOLD", "50.00")
    )
    MIN_LINE_QUANTITY: int = int(os.getenv("MIN_LINE_QUANTITY", "1"))
    MAX_LINE_QUANTITY: int = int(os.getenv("MAX_LINE_QUANTITY", "10"))

    # Search
    SEARCH_DEBOUNCE_MS: int = int(os.getenv("SEARCH_DEBOUNCE_MS", "300"))
    SEARCH_MIN_QUERY_LENGTH: int = int(os.getenv("SEARCH_MIN_QUERY_LENGTH", "2"))
    RECENT_SEARCH_LIMIT: int = int(os.getenv("RECENT_SEARCH_LIMIT", "5"))
    SUGGESTION_LIMIT: int = int(os.getenv("SUGGESTION_LIMIT", "8"))

    # Persisted state
    STATE_BACKEND: str = os.getenv("STATE_BACKEND", "memory")
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    STATE_KEY_PREFIX: str = os.getenv("STATE_KEY_PREFIX", "storefront:")
    CART_ID_KEY: str = os.getenv("CART_ID_KEY", "harmony-farm-cart-id")
    RECENT_SEARCHES_KEY: str = os.getenv(
        "RECENT_SEARCHES_KEY",
        "harmony-farm-recent-searches",
    )
    LOCAL_CART_KEY: str = os.getenv("LOCAL_CART_KEY", "harmony-farm-local-cart")

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def backend_configured(self) -> bool:
        """Return True when a storefront client can be initialized."""
        return bool(self.SHOPIFY_DOMAIN and self.SHOPIFY_STOREFRONT_TOKEN)

    @property
    def graphql_endpoint(self) -> str:
        return (
            f"https://{self.SHOPIFY_DOMAIN}/api/{self.SHOPIFY_API_VERSION}"
            "/graphql.json"
        )

    def __init__(self):
        self.env = os.getenv("ENV", "dev")
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with env={self.env}, debug={self.debug}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
