"""Configuration management for the SmartPlates recipe query engine.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Spoonacular API Key: required only where an upstream client is built
        self.SPOONACULAR_API_KEY: str = os.getenv("SPOONACULAR_API_KEY", "")
        # Base URL of the upstream recipe source
        self.SPOONACULAR_BASE_URL: str = os.getenv("SPOONACULAR_BASE_URL", "https://api.spoonacular.com")
        # Total timeout (seconds) for a single upstream request. Default: 10
        self.UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))
        # Minimum spacing between upstream requests. Default: 0.5s (2 requests per second)
        self.MIN_REQUEST_INTERVAL_SECONDS: float = float(os.getenv("MIN_REQUEST_INTERVAL_SECONDS", "0.5"))
        # Log a warning once the remaining daily quota drops below this many points. Default: 10
        self.QUOTA_WARNING_THRESHOLD: int = int(os.getenv("QUOTA_WARNING_THRESHOLD", "10"))

        # Candidate pool fetched once for free-text search. Default: 100
        self.LOCAL_BATCH_SIZE: int = int(os.getenv("LOCAL_BATCH_SIZE", "100"))

        # Access tier policy
        # ANONYMOUS_PAGE_SIZE: page size for visitors who are not signed in. Default: 30
        self.ANONYMOUS_PAGE_SIZE: int = int(os.getenv("ANONYMOUS_PAGE_SIZE", "30"))
        # AUTHENTICATED_PAGE_SIZE: page size for signed-in users. Default: 60
        self.AUTHENTICATED_PAGE_SIZE: int = int(os.getenv("AUTHENTICATED_PAGE_SIZE", "60"))
        # ANONYMOUS_PAGE_LIMIT: pages an anonymous visitor may load before being asked to register. Default: 1
        self.ANONYMOUS_PAGE_LIMIT: int = int(os.getenv("ANONYMOUS_PAGE_LIMIT", "1"))

        # Optional JSON file overriding the category/diet/allergen/typo tables
        self.FACET_TABLES_FILE: Optional[str] = os.getenv("FACET_TABLES_FILE")

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a numeric setting is out of range.
        """
        if self.UPSTREAM_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"UPSTREAM_TIMEOUT_SECONDS must be positive, got: {self.UPSTREAM_TIMEOUT_SECONDS}"
            )
        if self.MIN_REQUEST_INTERVAL_SECONDS < 0:
            raise ValueError(
                f"MIN_REQUEST_INTERVAL_SECONDS must not be negative, got: {self.MIN_REQUEST_INTERVAL_SECONDS}"
            )
        if not (1 <= self.LOCAL_BATCH_SIZE <= 100):
            raise ValueError(
                f"LOCAL_BATCH_SIZE must be between 1 and 100, got: {self.LOCAL_BATCH_SIZE}"
            )
        # Page sizes are sent upstream as `number`, which Spoonacular caps at 100
        if not (1 <= self.ANONYMOUS_PAGE_SIZE <= 100):
            raise ValueError(
                f"ANONYMOUS_PAGE_SIZE must be between 1 and 100, got: {self.ANONYMOUS_PAGE_SIZE}"
            )
        if not (1 <= self.AUTHENTICATED_PAGE_SIZE <= 100):
            raise ValueError(
                f"AUTHENTICATED_PAGE_SIZE must be between 1 and 100, got: {self.AUTHENTICATED_PAGE_SIZE}"
            )
        if self.ANONYMOUS_PAGE_LIMIT < 1:
            raise ValueError(f"ANONYMOUS_PAGE_LIMIT must be at least 1, got: {self.ANONYMOUS_PAGE_LIMIT}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
