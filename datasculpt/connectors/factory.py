"""Connector factory, connectivity probe and schema introspection."""

from __future__ import annotations

import logging
from urllib.parse import unquote, urlparse

from pydantic import SecretStr

from datasculpt import dialects
from datasculpt.connectors.base import BaseConnector, TableInfo
from datasculpt.models.datasource import DataSourceConfig

logger = logging.getLogger(__name__)

_DEFAULT_USERS = {"postgresql": "postgres", "mysql": "root"}


def create_connector(
    config: DataSourceConfig,
    *,
    connect_timeout: int = 10,
    timeout: int = 30,
    **kwargs,
) -> BaseConnector:
    """Create an unconnected connector for a data source config."""
    dialect = dialects.get_dialect(config.kind)
    return dialect.connector_class(
        host=config.host,
        port=config.port,
        database=config.database,
        user=config.username,
        password=config.password.get_secret_value(),
        connect_timeout=connect_timeout,
        timeout=timeout,
        **kwargs,
    )


def config_from_url(database_url: str, *, name: str | None = None) -> DataSourceConfig:
    """
    Build a DataSourceConfig from a database URL.

    Accepts postgres://, postgresql://, postgresql+asyncpg:// and mysql:// URLs.
    Missing ports and users fall back to the engine defaults.
    """
    parsed = urlparse(database_url)
    if not parsed.hostname:
        raise ValueError("Invalid database URL: host is required.")

    dialect = dialects.get_dialect(parsed.scheme.split("+")[0])
    database = parsed.path.lstrip("/")
    if not database:
        raise ValueError("Invalid database URL: database name is required.")

    return DataSourceConfig(
        name=name or f"{dialect.label} ({parsed.hostname})",
        kind=dialect.kind,
        host=parsed.hostname,
        port=parsed.port or dialect.default_port,
        database=database,
        username=unquote(parsed.username) if parsed.username else _DEFAULT_USERS[dialect.kind],
        password=SecretStr(unquote(parsed.password) if parsed.password else ""),
    )


async def probe_connection(config: DataSourceConfig, *, connect_timeout: int = 10) -> None:
    """
    Open a connection, run SELECT 1 and close it.

    Raises:
        ConnectorError: If the database cannot be reached or the query fails
    """
    logger.info(f"Probing data source {config.describe()}")
    async with create_connector(
        config, connect_timeout=connect_timeout, timeout=connect_timeout
    ) as connector:
        await connector.execute("SELECT 1")


async def introspect_connection(
    config: DataSourceConfig, *, connect_timeout: int = 10, timeout: int = 30
) -> list[TableInfo]:
    """
    Open a connection, read the tables of the configured database and close it.

    Raises:
        ConnectorError: If the database cannot be reached or introspection fails
    """
    logger.info(f"Introspecting data source {config.describe()}")
    async with create_connector(
        config, connect_timeout=connect_timeout, timeout=timeout
    ) as connector:
        return await connector.get_schema()
