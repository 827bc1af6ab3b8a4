"""
Unit tests for service configuration and process entry.
"""

import pytest
from pydantic import ValidationError as SettingsError

from shared.config import get_config
from service_products.app import main as entrypoint


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the developer's shell and any .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ("DATABASE_URL", "REDIS_URL", "PORT", "HOST", "LOG_LEVEL", "APP_ENV", "ENABLE_TRACING"):
        monkeypatch.delenv(name, raising=False)


class TestServiceConfig:
    """Test cases for ServiceConfig."""

    def test_defaults(self, monkeypatch):
        """Test only DATABASE_URL is required."""
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost:5432/products")

        config = get_config("products")

        assert config.service_name == "products"
        assert config.database_url == "postgresql://localhost:5432/products"
        assert config.redis_url is None
        assert config.cache_enabled is False
        assert config.port == 8080
        assert config.enable_tracing is False

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("DATABASE_URL", "postgresql://db:5432/products")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = get_config("products")

        assert config.redis_url == "redis://cache:6379/0"
        assert config.cache_enabled is True
        assert config.port == 9090
        assert config.log_level == "debug"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_redis_url_disables_cache(self, monkeypatch, value):
        """Test an empty REDIS_URL behaves like an unset one."""
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost:5432/products")
        monkeypatch.setenv("REDIS_URL", value)

        assert get_config("products").cache_enabled is False

    def test_dotenv_file(self, tmp_path):
        """Test a .env file in the working directory is honoured."""
        (tmp_path / ".env").write_text("DATABASE_URL=postgresql://dotenv:5432/products\n")

        assert get_config("products").database_url == "postgresql://dotenv:5432/products"

    def test_missing_database_url(self):
        """Test DATABASE_URL is required."""
        with pytest.raises(SettingsError) as exc_info:
            get_config("products")

        assert exc_info.value.errors()[0]["loc"] == ("DATABASE_URL",)


class TestMain:
    """Test cases for the process entry point."""

    def test_missing_database_url_exits(self):
        """Test startup refuses to run without DATABASE_URL."""
        with pytest.raises(SystemExit) as exc_info:
            entrypoint.main()

        assert str(exc_info.value) == "missing env: DATABASE_URL"

    def test_runs_service(self, monkeypatch):
        """Test a configured process hands off to the server."""
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost:5432/products")
        calls = []
        monkeypatch.setattr(entrypoint.ProductsService, "run", lambda self: calls.append(self))

        entrypoint.main()

        assert len(calls) == 1
        assert calls[0].config.port == 8080
