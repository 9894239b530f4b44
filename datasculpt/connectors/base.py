"""
Connector interface.

A connector wraps exactly one database connection. connect() opens it and
close() releases it; `async with` ties the two together so the connection is
released when the block exits for any reason:

    async with create_connector(config) as connector:
        result = await connector.execute("SELECT 1")

Subclasses provide connect, execute, get_schema and close for one driver.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


# ============================================================================
# Data Models
# ============================================================================


class ColumnInfo(BaseModel):
    """One introspected column and the column it references, if any."""

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Driver-reported type")
    foreign_table: str | None = Field(None, description="Referenced table for a foreign key")
    foreign_column: str | None = Field(None, description="Referenced column for a foreign key")


class TableInfo(BaseModel):
    """One introspected table or view."""

    schema_name: str = Field(..., alias="schema", description="Schema (PostgreSQL) or database (MySQL)")
    table_name: str = Field(..., description="Table name")
    columns: list[ColumnInfo] = Field(..., description="Columns in ordinal order")

    model_config = ConfigDict(populate_by_name=True)


class QueryResult(BaseModel):
    """Rows returned by one statement."""

    rows: list[dict[str, Any]] = Field(..., description="One dict per row, keyed by column")
    row_count: int = Field(..., description="len(rows)")
    columns: list[str] = Field(..., description="Column names in select order")
    execution_time_ms: float = Field(..., description="Wall-clock time of the round trip")


class ConnectorError(Exception):
    """Any driver-level failure. The safety gate wraps these as ExecutionFailure."""


class ConnectionError(ConnectorError):
    """The database could not be reached, or the connector is not connected."""


class QueryError(ConnectorError):
    """The database rejected or cancelled a statement."""


class SchemaError(ConnectorError):
    """information_schema could not be read."""


# ============================================================================
# Base Connector
# ============================================================================


class BaseConnector(ABC):
    """
    Single-connection async connector.

    Args:
        host, port, database, user, password: Connection parameters
        connect_timeout: Seconds allowed for opening the connection
        timeout: Default statement timeout in seconds
        **kwargs: Passed through to the driver's connect call
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        connect_timeout: int = 10,
        timeout: int = 30,
        **kwargs,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.connect_timeout = connect_timeout
        self.timeout = timeout
        self.kwargs = kwargs

        self._conn = None
        self._connected = False

    @property
    def location(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection. No-op when already connected.

        Raises:
            ConnectionError: Unreachable host, bad credentials or connect timeout
        """

    @abstractmethod
    async def execute(self, query: str, timeout: int | None = None) -> QueryResult:
        """
        Run one statement with a statement timeout (default: self.timeout).

        Raises:
            ConnectionError: If connect() has not succeeded
            QueryError: If the database rejects or cancels the statement
        """

    @abstractmethod
    async def get_schema(self, schema_name: str | None = None) -> list[TableInfo]:
        """
        List tables with their columns and foreign keys.

        Raises:
            SchemaError: If introspection queries fail
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the connection. Safe to call more than once."""

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"<{type(self).__name__} {self.location} ({state})>"

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _require_connection(self):
        if not self._connected or self._conn is None:
            raise ConnectionError("Not connected to database. Call connect() first.")
        return self._conn

    def _release_handle(self):
        """Detach the driver connection, returning it for the subclass to close."""
        conn, self._conn = self._conn, None
        self._connected = False
        return conn

    @staticmethod
    def _result(rows: list[dict[str, Any]], columns: list[str], started: float) -> QueryResult:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"Statement returned {len(rows)} rows in {elapsed_ms:.2f}ms")
        return QueryResult(
            rows=rows,
            row_count=len(rows),
            columns=columns,
            execution_time_ms=elapsed_ms,
        )

    @staticmethod
    def _assemble_tables(
        schema_name: str,
        column_rows: Iterable[Mapping[str, Any]],
        fk_rows: Iterable[Mapping[str, Any]],
        type_key: str = "data_type",
    ) -> list[TableInfo]:
        """
        Group information_schema rows into TableInfo objects.

        column_rows carry table_name, column_name and type_key; fk_rows carry
        table_name, column_name, foreign_table_name and foreign_column_name.
        """
        references = {
            (str(row["table_name"]), str(row["column_name"])): (
                str(row["foreign_table_name"]),
                str(row["foreign_column_name"]),
            )
            for row in fk_rows
        }

        tables: dict[str, list[ColumnInfo]] = {}
        for row in column_rows:
            key = (str(row["table_name"]), str(row["column_name"]))
            foreign_table, foreign_column = references.get(key, (None, None))
            tables.setdefault(key[0], []).append(
                ColumnInfo(
                    name=key[1],
                    data_type=str(row[type_key]),
                    foreign_table=foreign_table,
                    foreign_column=foreign_column,
                )
            )

        logger.info(f"Introspected '{schema_name}': {len(tables)} tables")
        return [
            TableInfo(schema=schema_name, table_name=name, columns=columns)
            for name, columns in tables.items()
        ]
