"""
Safety Gate

Classifies a raw SQL string and executes it only when it is a read.

Classification is a case-insensitive keyword scan, first match wins:
    drop / delete / truncate  -> destructive (rejected)
    insert / update           -> write (rejected)
    no select                 -> unrecognized (rejected)
    otherwise                 -> read (executed)

The scan matches substrings, so identifiers such as `last_updated` are
rejected as writes, and it offers no protection beyond keyword presence.
Run it against a read-only database role.

Each execution opens a fresh connection for the resolved data source and
releases it on every exit path.
"""

import logging
from collections.abc import Callable

from datasculpt.connectors.base import BaseConnector, ConnectorError, QueryResult
from datasculpt.connectors.factory import create_connector
from datasculpt.models.datasource import DataSourceConfig
from datasculpt.models.errors import ExecutionFailure, SafetyRejection
from datasculpt.models.query import QueryClassification

logger = logging.getLogger(__name__)

DESTRUCTIVE_KEYWORDS = ("drop", "delete", "truncate")
WRITE_KEYWORDS = ("insert", "update")

REJECTION_REASONS = {
    QueryClassification.DESTRUCTIVE: "Destructive operations are not allowed",
    QueryClassification.WRITE: "Write operations are not allowed in read-only mode",
    QueryClassification.UNRECOGNIZED: "Only SELECT queries are allowed",
}

ConfigResolver = Callable[[str | None], DataSourceConfig | None]
ConnectorFactory = Callable[..., BaseConnector]


def classify(sql: str) -> QueryClassification:
    """Classify a SQL string by keyword presence."""
    lowered = (sql or "").lower()
    if any(keyword in lowered for keyword in DESTRUCTIVE_KEYWORDS):
        return QueryClassification.DESTRUCTIVE
    if any(keyword in lowered for keyword in WRITE_KEYWORDS):
        return QueryClassification.WRITE
    if "select" not in lowered:
        return QueryClassification.UNRECOGNIZED
    return QueryClassification.READ


def check(sql: str) -> QueryClassification:
    """
    Classify and reject anything that is not a read.

    Raises:
        SafetyRejection: For destructive, write and unrecognized statements
    """
    classification = classify(sql)
    if classification is not QueryClassification.READ:
        reason = REJECTION_REASONS[classification]
        logger.warning(
            f"Rejected {classification.value} statement: {reason}",
            extra={"classification": classification.value, "sql": (sql or "")[:200]},
        )
        raise SafetyRejection(classification, reason)
    return classification


class SafetyGate:
    """
    Read-only SQL executor.

    Args:
        resolver: Maps a database kind (or None) to the data source to use when
            no explicit config is given
        connector_factory: Builds an unconnected connector for a config
        connect_timeout: Connection timeout in seconds
        statement_timeout: Statement timeout in seconds
    """

    def __init__(
        self,
        resolver: ConfigResolver | None = None,
        connector_factory: ConnectorFactory = create_connector,
        connect_timeout: int = 10,
        statement_timeout: int = 30,
    ):
        self.resolver = resolver
        self.connector_factory = connector_factory
        self.connect_timeout = connect_timeout
        self.statement_timeout = statement_timeout

    def resolve_config(self, kind: str | None = None) -> DataSourceConfig:
        """
        Data source for a kind when the caller supplied none.

        Raises:
            ExecutionFailure: If nothing is configured for the kind
        """
        config = self.resolver(kind) if self.resolver else None
        if config is None:
            target = kind or "any"
            raise ExecutionFailure(details=f"No data source configured for database type '{target}'")
        return config

    async def execute(
        self,
        sql: str,
        config: DataSourceConfig | None = None,
        kind: str | None = None,
    ) -> QueryResult:
        """
        Execute a read query.

        Args:
            sql: Raw SQL string
            config: Connection parameters for this execution (overrides resolver)
            kind: Database kind used to resolve a config when none is given

        Raises:
            SafetyRejection: Statement is not a read (no connection is attempted)
            ExecutionFailure: No data source, or the database reported an error
        """
        check(sql)
        target = config or self.resolve_config(kind)

        logger.info(
            f"Executing read query on {target.describe()}",
            extra={"kind": target.kind, "source": target.name},
        )
        try:
            async with self.connector_factory(
                target,
                connect_timeout=self.connect_timeout,
                timeout=self.statement_timeout,
            ) as connector:
                result = await connector.execute(sql)
        except ConnectorError as e:
            logger.error(f"Query execution failed on {target.describe()}: {e}")
            raise ExecutionFailure(details=str(e)) from e
        except Exception as e:
            # CancelledError is a BaseException and propagates unchanged
            logger.error(
                f"Unexpected error executing on {target.describe()}: {e}", exc_info=True
            )
            raise ExecutionFailure(details=str(e) or type(e).__name__) from e

        logger.info(
            f"Query returned {result.row_count} rows in {result.execution_time_ms:.1f}ms",
            extra={"row_count": result.row_count},
        )
        return result
