"""
PostgreSQL Connector

asyncpg connector holding one connection per `async with` block. Statements
run in autocommit mode (no explicit transaction is opened), with
statement_timeout set before each one.
"""

import asyncio
import logging
import time

import asyncpg

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
    SELECT c.table_name, c.column_name, c.data_type
    FROM information_schema.columns c
    JOIN information_schema.tables t
        ON t.table_schema = c.table_schema AND t.table_name = c.table_name
    WHERE c.table_schema = $1
    AND t.table_type IN ('BASE TABLE', 'VIEW')
    ORDER BY c.table_name, c.ordinal_position
"""

_FOREIGN_KEYS_SQL = """
    SELECT
        kcu.table_name,
        kcu.column_name,
        ccu.table_name AS foreign_table_name,
        ccu.column_name AS foreign_column_name
    FROM information_schema.table_constraints AS tc
    JOIN information_schema.key_column_usage AS kcu
        ON tc.constraint_name = kcu.constraint_name
        AND tc.table_schema = kcu.table_schema
    JOIN information_schema.constraint_column_usage AS ccu
        ON ccu.constraint_name = tc.constraint_name
        AND ccu.table_schema = tc.table_schema
    WHERE tc.constraint_type = 'FOREIGN KEY'
    AND tc.table_schema = $1
"""


class PostgresConnector(BaseConnector):
    """PostgreSQL through asyncpg."""

    async def connect(self) -> None:
        if self._connected and self._conn is not None:
            return

        logger.info(f"Connecting to PostgreSQL at {self.host}:{self.port}/{self.database}")
        try:
            self._conn = await asyncpg.connect(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                timeout=self.connect_timeout,
                command_timeout=self.timeout,
                **self.kwargs,
            )
        except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"PostgreSQL connection to {self.host}:{self.port} failed: {e}")
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e
        except Exception as e:
            logger.error(f"PostgreSQL connection to {self.host}:{self.port} failed: {e}")
            raise ConnectionError(f"Connection error: {e}") from e
        self._connected = True

    async def execute(self, query: str, timeout: int | None = None) -> QueryResult:
        conn = self._require_connection()
        limit = timeout or self.timeout
        started = time.perf_counter()

        try:
            # statement_timeout is in milliseconds
            await conn.execute(f"SET statement_timeout = {int(limit * 1000)}")
            records = await conn.fetch(query)
        except asyncpg.QueryCanceledError as e:
            logger.error(f"Statement cancelled after {limit}s: {query[:100]}")
            raise QueryError(f"Query timeout ({limit}s)") from e
        except asyncpg.PostgresError as e:
            logger.error(f"PostgreSQL rejected statement: {e}", extra={"sql": query[:200]})
            raise QueryError(str(e)) from e
        except Exception as e:
            logger.error(f"PostgreSQL statement failed: {e}", extra={"sql": query[:200]})
            raise QueryError(f"Query error: {e}") from e

        columns = list(records[0].keys()) if records else []
        return self._result([dict(record) for record in records], columns, started)

    async def get_schema(self, schema_name: str | None = None) -> list[TableInfo]:
        """Tables and views of one schema (default: public)."""
        conn = self._require_connection()
        schema = schema_name or "public"
        try:
            column_rows = await conn.fetch(_COLUMNS_SQL, schema)
            fk_rows = await conn.fetch(_FOREIGN_KEYS_SQL, schema)
        except asyncpg.PostgresError as e:
            logger.error(f"Schema introspection of '{schema}' failed: {e}")
            raise SchemaError(f"Failed to introspect schema: {e}") from e
        return self._assemble_tables(schema, column_rows, fk_rows)

    async def close(self) -> None:
        conn = self._release_handle()
        if conn is None:
            return
        try:
            await conn.close()
        except Exception as e:
            logger.warning(f"Error closing PostgreSQL connection: {e}")
