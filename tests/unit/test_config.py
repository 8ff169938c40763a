"""Unit tests for configuration management."""

import pytest

from smartplates.utils.config import Config


class TestConfigInitialization:
    """Test Config class initialization and environment variable loading."""

    def test_config_loads_default_values(self, monkeypatch):
        """Test that Config uses default values when env vars not set."""
        for name in (
            "SPOONACULAR_API_KEY",
            "SPOONACULAR_BASE_URL",
            "UPSTREAM_TIMEOUT_SECONDS",
            "MIN_REQUEST_INTERVAL_SECONDS",
            "QUOTA_WARNING_THRESHOLD",
            "LOCAL_BATCH_SIZE",
            "ANONYMOUS_PAGE_SIZE",
            "AUTHENTICATED_PAGE_SIZE",
            "ANONYMOUS_PAGE_LIMIT",
            "FACET_TABLES_FILE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.SPOONACULAR_API_KEY == ""
        assert config.SPOONACULAR_BASE_URL == "https://api.spoonacular.com"
        assert config.UPSTREAM_TIMEOUT_SECONDS == 10.0
        assert config.MIN_REQUEST_INTERVAL_SECONDS == 0.5
        assert config.QUOTA_WARNING_THRESHOLD == 10
        assert config.LOCAL_BATCH_SIZE == 100
        assert config.ANONYMOUS_PAGE_SIZE == 30
        assert config.AUTHENTICATED_PAGE_SIZE == 60
        assert config.ANONYMOUS_PAGE_LIMIT == 1
        assert config.FACET_TABLES_FILE is None

    def test_config_loads_from_environment(self, monkeypatch):
        """Test that Config loads values from environment variables."""
        monkeypatch.setenv("SPOONACULAR_API_KEY", "test_spoonacular_key")
        monkeypatch.setenv("SPOONACULAR_BASE_URL", "http://localhost:9000")
        monkeypatch.setenv("LOCAL_BATCH_SIZE", "50")
        monkeypatch.setenv("ANONYMOUS_PAGE_SIZE", "12")
        monkeypatch.setenv("AUTHENTICATED_PAGE_SIZE", "24")
        monkeypatch.setenv("ANONYMOUS_PAGE_LIMIT", "2")
        monkeypatch.setenv("FACET_TABLES_FILE", "/tmp/facets.json")

        config = Config()

        assert config.SPOONACULAR_API_KEY == "test_spoonacular_key"
        assert config.SPOONACULAR_BASE_URL == "http://localhost:9000"
        assert config.LOCAL_BATCH_SIZE == 50
        assert config.ANONYMOUS_PAGE_SIZE == 12
        assert config.AUTHENTICATED_PAGE_SIZE == 24
        assert config.ANONYMOUS_PAGE_LIMIT == 2
        assert config.FACET_TABLES_FILE == "/tmp/facets.json"

    def test_config_converts_numeric_types(self, monkeypatch):
        """Test that Config properly converts numeric environment variables."""
        monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("QUOTA_WARNING_THRESHOLD", "25")

        config = Config()

        assert isinstance(config.UPSTREAM_TIMEOUT_SECONDS, float)
        assert config.UPSTREAM_TIMEOUT_SECONDS == 2.5
        assert isinstance(config.QUOTA_WARNING_THRESHOLD, int)
        assert isinstance(config.LOCAL_BATCH_SIZE, int)


class TestConfigValidation:
    """Test Config validation logic."""

    def test_validate_does_not_require_api_key(self, monkeypatch):
        """The API key is checked where a client is built, not at import."""
        monkeypatch.setenv("SPOONACULAR_API_KEY", "")

        config = Config()
        config.validate()  # Should not raise

    @pytest.mark.parametrize(
        "name,value",
        [
            ("UPSTREAM_TIMEOUT_SECONDS", "0"),
            ("MIN_REQUEST_INTERVAL_SECONDS", "-1"),
            ("LOCAL_BATCH_SIZE", "0"),
            ("LOCAL_BATCH_SIZE", "101"),
            ("ANONYMOUS_PAGE_SIZE", "0"),
            ("ANONYMOUS_PAGE_SIZE", "120"),
            ("AUTHENTICATED_PAGE_SIZE", "0"),
            ("AUTHENTICATED_PAGE_SIZE", "101"),
            ("ANONYMOUS_PAGE_LIMIT", "0"),
        ],
    )
    def test_validate_rejects_out_of_range_values(self, monkeypatch, name, value):
        """Test that validate() raises ValueError naming the offending setting."""
        monkeypatch.setenv(name, value)

        config = Config()
        with pytest.raises(ValueError, match=name):
            config.validate()

    def test_validate_accepts_zero_request_interval(self, monkeypatch):
        """A zero interval disables throttling."""
        monkeypatch.setenv("MIN_REQUEST_INTERVAL_SECONDS", "0")

        config = Config()
        config.validate()


class TestModuleLevelConfig:
    """Test the module-level config instance."""

    def test_config_is_importable(self):
        from smartplates.utils.config import config

        assert isinstance(config, Config)
