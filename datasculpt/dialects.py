"""
SQL dialects.

Everything that differs between PostgreSQL and MySQL lives here: the rules
embedded in generation prompts, the SQL fragments used by fallback queries,
and the connector class that executes statements.
"""

from __future__ import annotations

from dataclasses import dataclass

from datasculpt.connectors.base import BaseConnector
from datasculpt.connectors.mysql import MySQLConnector
from datasculpt.connectors.postgres import PostgresConnector


@dataclass(frozen=True)
class Dialect:
    """Per-database-kind behaviour."""

    kind: str
    label: str
    rules: tuple[str, ...]
    connector_class: type[BaseConnector]
    default_port: int
    month_format: str
    limit_template: str

    def month_bucket(self, column: str) -> str:
        """Expression truncating a date column to a 'YYYY-MM' label."""
        return self.month_format.format(column=column)

    def limit(self, n: int) -> str:
        """Row-limit clause for the end of a statement."""
        return self.limit_template.format(n=int(n))


POSTGRESQL = Dialect(
    kind="postgresql",
    label="PostgreSQL",
    rules=(
        "Use DATE_TRUNC('month', bill_date) for month grouping and "
        "TO_CHAR(..., 'YYYY-MM') to label months",
        "Use EXTRACT(YEAR FROM bill_date) and EXTRACT(MONTH FROM bill_date) for date parts",
        "Use COALESCE() for null handling",
        "Use FETCH FIRST n ROWS ONLY to limit rows",
        "Quote identifiers with double quotes only when required",
    ),
    connector_class=PostgresConnector,
    default_port=5432,
    month_format="TO_CHAR(DATE_TRUNC('month', {column}), 'YYYY-MM')",
    limit_template="FETCH FIRST {n} ROWS ONLY",
)

MYSQL = Dialect(
    kind="mysql",
    label="MySQL",
    rules=(
        "Use DATE_FORMAT(bill_date, '%Y-%m') for month grouping",
        "Use YEAR(bill_date) and MONTH(bill_date) for date extraction",
        "Use IFNULL() instead of COALESCE()",
        "Use LIMIT instead of FETCH FIRST",
        "Use MySQL date functions for time-based queries",
    ),
    connector_class=MySQLConnector,
    default_port=3306,
    month_format="DATE_FORMAT({column}, '%Y-%m')",
    limit_template="LIMIT {n}",
)

_DIALECTS: dict[str, Dialect] = {
    "postgresql": POSTGRESQL,
    "postgres": POSTGRESQL,
    "mysql": MYSQL,
}


def get_dialect(kind: str) -> Dialect:
    """Return the dialect for a database kind (case-insensitive)."""
    dialect = _DIALECTS.get((kind or "").strip().lower())
    if dialect is None:
        raise ValueError(f"Unsupported database type: {kind}")
    return dialect
