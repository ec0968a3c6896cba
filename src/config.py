"""
Configuration settings for the application.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Redis settings
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CATALOG_KEY_PREFIX: str = os.getenv("CATALOG_KEY_PREFIX", "catalog:")
    BLOB_KEY_PREFIX: str = os.getenv("BLOB_KEY_PREFIX", "blob:")

    # Image storage
    IMAGE_BUCKET: str = os.getenv("IMAGE_BUCKET", "product-images")
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
    UPLOAD_NAME_ATTEMPTS: int = int(os.getenv("UPLOAD_NAME_ATTEMPTS", "3"))
    UPLOAD_CONCURRENCY: int = int(os.getenv("UPLOAD_CONCURRENCY", "4"))

    # Editing sessions
    DRAFT_TTL_SECONDS: int = int(os.getenv("DRAFT_TTL_SECONDS", "86400"))
    DELETION_TTL_SECONDS: int = int(os.getenv("DELETION_TTL_SECONDS", "300"))

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def image_base_url(self) -> str:
        """Public prefix under which stored product images are served."""
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/images/{self.IMAGE_BUCKET}"

    def __init__(self):
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
