"""
Unit tests for configuration module.

Tests settings loading, validation, nested configuration, and caching.
"""

import logging

import pytest
from pydantic import ValidationError

from datasculpt.config import (
    DatabaseSettings,
    LLMSettings,
    LoggingSettings,
    RegistrySettings,
    Settings,
    clear_settings_cache,
    get_settings,
)


class TestLLMSettings:
    """Test LLM configuration."""

    def test_default_llm_settings(self):
        """Defaults select Bedrock with deterministic sampling."""
        settings = LLMSettings()

        assert settings.default_provider == "bedrock"
        assert settings.openai_model == "gpt-4o"
        assert settings.temperature == 0.1
        assert settings.max_tokens == 1000
        assert settings.timeout == 30

    def test_custom_llm_settings(self, monkeypatch):
        """Custom LLM settings override defaults."""
        monkeypatch.setenv("LLM_DEFAULT_PROVIDER", "openai")
        monkeypatch.setenv("LLM_OPENAI_API_KEY", "sk-custom-key-1234567890xyz")
        monkeypatch.setenv("LLM_OPENAI_MODEL", "gpt-4-turbo")
        monkeypatch.setenv("LLM_TEMPERATURE", "0.5")

        settings = LLMSettings()

        assert settings.default_provider == "openai"
        assert settings.openai_api_key == "sk-custom-key-1234567890xyz"
        assert settings.openai_model == "gpt-4-turbo"
        assert settings.temperature == 0.5

    def test_openai_key_requires_sk_prefix(self, monkeypatch):
        monkeypatch.setenv("LLM_OPENAI_API_KEY", "invalid-key-1234567890abcdef")

        with pytest.raises(ValidationError, match="must start with 'sk-'"):
            LLMSettings()

    def test_anthropic_key_requires_prefix(self, monkeypatch):
        monkeypatch.setenv("LLM_ANTHROPIC_API_KEY", "sk-wrong-prefix-1234567890abc")

        with pytest.raises(ValidationError, match="must start with 'sk-ant-'"):
            LLMSettings()

    def test_api_key_minimum_length(self, monkeypatch):
        monkeypatch.setenv("LLM_OPENAI_API_KEY", "sk-short")

        with pytest.raises(ValidationError):
            LLMSettings()

    def test_temperature_validation(self, monkeypatch):
        monkeypatch.setenv("LLM_TEMPERATURE", "1.5")

        with pytest.raises(ValidationError, match="less than or equal to 1"):
            LLMSettings()

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setenv("LLM_DEFAULT_PROVIDER", "google")

        with pytest.raises(ValidationError):
            LLMSettings()

    def test_aws_keys_must_be_paired(self, monkeypatch):
        monkeypatch.setenv("LLM_AWS_ACCESS_KEY_ID", "AKIAEXAMPLE")
        monkeypatch.delenv("LLM_AWS_SECRET_ACCESS_KEY", raising=False)

        with pytest.raises(ValidationError, match="Set both"):
            LLMSettings()


class TestDatabaseSettings:
    """Test default data source configuration."""

    def test_no_defaults(self):
        settings = DatabaseSettings()

        assert settings.postgres_url is None
        assert settings.mysql_url is None
        assert settings.connect_timeout == 10
        assert settings.statement_timeout == 30

    def test_default_urls(self, monkeypatch):
        monkeypatch.setenv("DATABASE_POSTGRES_URL", "postgresql://app:pw@pg.internal:5432/postgres")
        monkeypatch.setenv("DATABASE_MYSQL_URL", "mysql://analyst:pw@mysql.internal/lux_industries")

        settings = DatabaseSettings()

        assert settings.postgres_url.host == "pg.internal"
        assert settings.mysql_url.path == "/lux_industries"

    def test_driver_suffix_accepted(self, monkeypatch):
        monkeypatch.setenv("DATABASE_POSTGRES_URL", "postgresql+asyncpg://app@localhost/db")

        assert DatabaseSettings().postgres_url is not None

    def test_empty_url_is_missing(self, monkeypatch):
        monkeypatch.setenv("DATABASE_MYSQL_URL", "")

        assert DatabaseSettings().mysql_url is None

    @pytest.mark.parametrize(
        "name,url,message",
        [
            ("DATABASE_POSTGRES_URL", "mysql://app@localhost/db", "postgresql:// scheme"),
            ("DATABASE_MYSQL_URL", "postgresql://app@localhost/db", "mysql:// scheme"),
        ],
    )
    def test_scheme_validation(self, monkeypatch, name, url, message):
        monkeypatch.setenv(name, url)

        with pytest.raises(ValidationError, match=message):
            DatabaseSettings()

    def test_timeouts_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("DATABASE_CONNECT_TIMEOUT", "0")

        with pytest.raises(ValidationError):
            DatabaseSettings()


class TestRegistrySettings:
    def test_path_from_environment(self, tmp_path):
        settings = RegistrySettings()

        assert settings.path == tmp_path / "sources.json"
        assert settings.credentials_key is None

    def test_credentials_key(self, monkeypatch):
        monkeypatch.setenv("REGISTRY_CREDENTIALS_KEY", "key-material")

        assert RegistrySettings().credentials_key == "key-material"


class TestLoggingSettings:
    """Test logging configuration."""

    def test_default_logging_settings(self):
        settings = LoggingSettings()

        assert settings.level == "INFO"
        assert settings.file is None

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError):
            LoggingSettings()

    def test_configure_sets_root_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        LoggingSettings().configure()

        assert logging.getLogger().level == logging.WARNING

    def test_configure_with_file(self, tmp_path, monkeypatch):
        log_file = tmp_path / "logs" / "datasculpt.log"
        monkeypatch.setenv("LOG_FILE", str(log_file))

        LoggingSettings().configure()
        logging.getLogger("datasculpt.test").warning("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file.exists()
        assert "written to file" in log_file.read_text()
        logging.basicConfig(force=True)


class TestSettings:
    """Test main application settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.api_port == 3001
        assert settings.schema_path is None
        assert settings.is_production is False
        assert settings.cors_origin_list == ["http://localhost:5173", "http://localhost:3000"]

    def test_nested_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("API_PORT", "8080")
        monkeypatch.setenv("DATABASE_MYSQL_URL", "mysql://analyst:pw@db/lux")
        monkeypatch.setenv("LLM_DEFAULT_PROVIDER", "anthropic")

        settings = Settings()

        assert settings.is_production is True
        assert settings.api_port == 8080
        assert settings.database.mysql_url is not None
        assert settings.llm.default_provider == "anthropic"

    def test_cors_origin_list_ignores_blanks(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", " https://app.example.com , ,http://localhost:5173")

        assert Settings().cors_origin_list == ["https://app.example.com", "http://localhost:5173"]

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "testing")

        with pytest.raises(ValidationError):
            Settings()


class TestGetSettings:
    """Test settings caching."""

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("API_PORT", "9000")

        assert get_settings().api_port == first.api_port

        clear_settings_cache()

        assert get_settings().api_port == 9000

    def test_dotenv_loaded_when_enabled(self, monkeypatch, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("APP_NAME=FromDotenv\n", encoding="utf-8")
        monkeypatch.setattr("datasculpt.config._DOTENV_PATH", dotenv)
        monkeypatch.setenv("DATASCULPT_ENV_SOURCE", "dotenv")
        # Registered so the variable set by load_dotenv is removed afterwards.
        monkeypatch.setenv("APP_NAME", "placeholder")
        monkeypatch.delenv("APP_NAME")

        assert get_settings().app_name == "FromDotenv"

    def test_dotenv_ignored_when_disabled(self, monkeypatch, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("APP_NAME=FromDotenv\n", encoding="utf-8")
        monkeypatch.setattr("datasculpt.config._DOTENV_PATH", dotenv)
        monkeypatch.delenv("APP_NAME", raising=False)

        assert get_settings().app_name == "DataSculpt"
