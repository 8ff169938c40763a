"""Pytest configuration and fixtures for integration tests.

Ensures environment variables are loaded and validates the Spoonacular API key
before running integration tests against the live API.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env before test collection so the module-level config sees it."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: These tests require a valid SPOONACULAR_API_KEY and spend quota points")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip all integration tests if SPOONACULAR_API_KEY is not configured."""
    if not os.getenv("SPOONACULAR_API_KEY"):
        pytest.skip(
            "Integration tests skipped. Missing API key: SPOONACULAR_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )
