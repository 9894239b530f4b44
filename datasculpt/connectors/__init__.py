"""
Database Connectors Module

Provides async database connectors for the supported engines.

Available Connectors:
    - BaseConnector: Abstract base class
    - PostgresConnector: PostgreSQL connector (asyncpg)
    - MySQLConnector: MySQL connector (mysql-connector-python)

Usage:
    from datasculpt.connectors import create_connector

    async with create_connector(config) as connector:
        result = await connector.execute("SELECT * FROM invoice_history")
"""

from datasculpt.connectors.base import (
    BaseConnector,
    ColumnInfo,
    ConnectionError,
    ConnectorError,
    QueryError,
    QueryResult,
    SchemaError,
    TableInfo,
)
from datasculpt.connectors.factory import (
    config_from_url,
    create_connector,
    introspect_connection,
    probe_connection,
)
from datasculpt.connectors.mysql import MySQLConnector
from datasculpt.connectors.postgres import PostgresConnector

__all__ = [
    "BaseConnector",
    "PostgresConnector",
    "MySQLConnector",
    "create_connector",
    "config_from_url",
    "probe_connection",
    "introspect_connection",
    "ColumnInfo",
    "TableInfo",
    "QueryResult",
    "ConnectorError",
    "ConnectionError",
    "QueryError",
    "SchemaError",
]
