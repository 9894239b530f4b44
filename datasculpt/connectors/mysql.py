"""
MySQL Connector

mysql-connector-python is synchronous, so each driver call is pushed to a
worker thread with asyncio.to_thread. The connection is opened with
autocommit on and connection_timeout; each statement is capped server-side
with MAX_EXECUTION_TIME.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import mysql.connector
from mysql.connector import Error as MySQLError

from datasculpt.connectors.base import (
    BaseConnector,
    ConnectionError,
    QueryError,
    QueryResult,
    SchemaError,
    TableInfo,
)

logger = logging.getLogger(__name__)

_COLUMNS_SQL = """
    SELECT c.table_name, c.column_name, c.column_type
    FROM information_schema.columns c
    WHERE c.table_schema = %s
    ORDER BY c.table_name, c.ordinal_position
"""

_FOREIGN_KEYS_SQL = """
    SELECT
        kcu.table_name,
        kcu.column_name,
        kcu.referenced_table_name AS foreign_table_name,
        kcu.referenced_column_name AS foreign_column_name
    FROM information_schema.key_column_usage kcu
    WHERE kcu.table_schema = %s
    AND kcu.referenced_table_name IS NOT NULL
"""


class MySQLConnector(BaseConnector):
    """MySQL through mysql-connector-python in worker threads."""

    async def connect(self) -> None:
        if self._connected and self._conn is not None:
            return

        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "database": self.database or None,
            "user": self.user,
            "password": self.password,
            "autocommit": True,
            "connection_timeout": self.connect_timeout,
            **self.kwargs,
        }
        logger.info(f"Connecting to MySQL at {self.host}:{self.port}/{self.database}")
        try:
            self._conn = await asyncio.to_thread(mysql.connector.connect, **params)
        except MySQLError as exc:
            logger.error(f"MySQL connection to {self.host}:{self.port} failed: {exc}")
            raise ConnectionError(f"Failed to connect to MySQL: {exc}") from exc
        except Exception as exc:
            logger.error(f"MySQL connection to {self.host}:{self.port} failed: {exc}")
            raise ConnectionError(f"Connection error: {exc}") from exc
        self._connected = True

    async def execute(self, query: str, timeout: int | None = None) -> QueryResult:
        conn = self._require_connection()
        limit = timeout or self.timeout
        started = time.perf_counter()

        try:
            rows, columns = await asyncio.to_thread(self._run, conn, query, limit)
        except MySQLError as exc:
            logger.error(f"MySQL rejected statement: {exc}", extra={"sql": query[:200]})
            raise QueryError(str(exc)) from exc
        except Exception as exc:
            logger.error(f"MySQL statement failed: {exc}", extra={"sql": query[:200]})
            raise QueryError(f"Query error: {exc}") from exc

        return self._result(rows, columns, started)

    async def get_schema(self, schema_name: str | None = None) -> list[TableInfo]:
        """Tables of one database (default: the connected one)."""
        conn = self._require_connection()
        schema = schema_name or self.database
        try:
            column_rows, fk_rows = await asyncio.to_thread(self._introspect, conn, schema)
        except MySQLError as exc:
            logger.error(f"Schema introspection of '{schema}' failed: {exc}")
            raise SchemaError(f"Failed to introspect schema: {exc}") from exc
        return self._assemble_tables(schema, column_rows, fk_rows, type_key="column_type")

    async def close(self) -> None:
        conn = self._release_handle()
        if conn is None:
            return
        try:
            await asyncio.to_thread(conn.close)
        except MySQLError as exc:
            logger.warning(f"Error closing MySQL connection: {exc}")

    @staticmethod
    def _run(conn, query: str, limit: int) -> tuple[list[dict[str, Any]], list[str]]:
        cursor = conn.cursor(dictionary=True)
        try:
            # Milliseconds; applies to SELECT statements
            cursor.execute(f"SET SESSION MAX_EXECUTION_TIME = {int(limit * 1000)}")
            cursor.execute(query)
            if not cursor.with_rows:
                return [], []
            columns = [column[0] for column in cursor.description or []]
            return cursor.fetchall(), columns
        finally:
            cursor.close()

    @staticmethod
    def _introspect(conn, schema: str) -> tuple[list[dict], list[dict]]:
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(_COLUMNS_SQL, (schema,))
            column_rows = cursor.fetchall()
            cursor.execute(_FOREIGN_KEYS_SQL, (schema,))
            return column_rows, cursor.fetchall()
        finally:
            cursor.close()
