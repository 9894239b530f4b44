"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from datasculpt.connectors.base import QueryResult
from datasculpt.models.datasource import DataSourceConfig

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires reachable databases or API keys)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may require external services)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """Capture logs at DEBUG for every test."""
    caplog.set_level(logging.DEBUG)
    yield


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Keep settings independent of the developer's environment.

    Points the registry at a temporary file, disables .env loading and
    clears the settings cache before and after each test.
    """
    from datasculpt.config import clear_settings_cache

    monkeypatch.setenv("DATASCULPT_ENV_SOURCE", "none")
    monkeypatch.setenv("REGISTRY_PATH", str(tmp_path / "sources.json"))
    for name in (
        "DATABASE_POSTGRES_URL",
        "DATABASE_MYSQL_URL",
        "REGISTRY_CREDENTIALS_KEY",
        "LLM_ANTHROPIC_API_KEY",
        "LLM_OPENAI_API_KEY",
        "SCHEMA_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Common Test Data
# ============================================================================


@pytest.fixture
def mysql_config() -> DataSourceConfig:
    return DataSourceConfig(
        id="mysql-1",
        name="LUX MySQL",
        kind="mysql",
        host="mysql.internal",
        port=3306,
        database="lux_industries",
        username="analyst",
        password=SecretStr("secret"),
    )


@pytest.fixture
def postgres_config() -> DataSourceConfig:
    return DataSourceConfig(
        id="pg-1",
        name="LUX Postgres",
        kind="postgresql",
        host="pg.internal",
        port=5432,
        database="postgres",
        username="analyst",
        password=SecretStr("secret"),
    )


@pytest.fixture
def mock_connector():
    """
    Connector double usable as an async context manager.

    `connector.execute` returns an empty QueryResult unless reconfigured;
    `factory` returns the same connector for every config.
    """
    connector = MagicMock()
    connector.execute = AsyncMock(
        return_value=QueryResult(rows=[], row_count=0, columns=[], execution_time_ms=1.0)
    )
    connector.__aenter__ = AsyncMock(return_value=connector)
    connector.__aexit__ = AsyncMock(return_value=False)
    factory = MagicMock(return_value=connector)
    return connector, factory


@pytest.fixture
def mock_llm_provider():
    """LLM provider double with an awaitable generate()."""
    provider = MagicMock()
    provider.provider_name = "mock"
    provider.generate = AsyncMock()
    return provider
