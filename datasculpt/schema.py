"""
Schema Descriptor

Static description of the tables, columns and relationships a generated
query may reach. It is rendered into generation prompts and used to check
that generated SQL only references known tables.

The bundled descriptor describes the LUX Industries sales database; a custom
one can be loaded from YAML (SCHEMA_PATH) or built from live introspection.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import sqlparse
import yaml
from pydantic import BaseModel, Field
from sqlparse.sql import Function, Identifier, IdentifierList, Parenthesis, TokenList
from sqlparse.tokens import DML, Comment, Keyword

from datasculpt.connectors.base import TableInfo

logger = logging.getLogger(__name__)

BUNDLED_SCHEMA = Path(__file__).resolve().parent / "schemas" / "lux_industries.yaml"

_CTE_PATTERN = re.compile(r"(?:\bWITH|,)\s+([A-Za-z_][A-Za-z0-9_]*)\s+AS\s*\(", re.IGNORECASE)


class SchemaDescriptor(BaseModel):
    """Tables, columns and relationships reachable by generated queries."""

    name: str = Field(..., description="Descriptor name")
    business_name: str = Field(default="the business", description="Business the data belongs to")
    tables: dict[str, list[str]] = Field(..., description="Table name -> column names")
    relationships: list[str] = Field(default_factory=list, description="'a.col -> b.col' edges")
    notes: list[str] = Field(default_factory=list, description="Domain hints for the model")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SchemaDescriptor":
        """Load a descriptor from a YAML file."""
        with open(path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        descriptor = cls.model_validate(data)
        logger.debug(f"Loaded schema descriptor '{descriptor.name}' from {path}")
        return descriptor

    @classmethod
    def bundled(cls) -> "SchemaDescriptor":
        """The LUX Industries descriptor shipped with the package."""
        return cls.from_yaml(BUNDLED_SCHEMA)

    @classmethod
    def from_tables(
        cls,
        tables: list[TableInfo],
        name: str = "introspected",
        business_name: str = "the business",
    ) -> "SchemaDescriptor":
        """Build a descriptor from connector introspection results."""
        relationships = [
            f"{table.table_name}.{column.name} -> {column.foreign_table}.{column.foreign_column}"
            for table in tables
            for column in table.columns
            if column.foreign_table and column.foreign_column
        ]
        return cls(
            name=name,
            business_name=business_name,
            tables={table.table_name: [column.name for column in table.columns] for table in tables},
            relationships=relationships,
        )

    def to_yaml(self, path: str | Path) -> None:
        """Write the descriptor in the format from_yaml reads."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as handle:
            yaml.safe_dump(self.model_dump(), handle, sort_keys=False, allow_unicode=True)

    @property
    def table_names(self) -> set[str]:
        return {name.lower() for name in self.tables}

    def render(self) -> str:
        """Plain-text block embedded in generation prompts."""
        lines = [f"DATABASE SCHEMA ({self.name}):"]
        for table, columns in self.tables.items():
            lines.append(f"- {table} ({', '.join(columns)})")
        if self.relationships:
            lines.append("")
            lines.append("RELATIONSHIPS:")
            lines.extend(f"- {edge}" for edge in self.relationships)
        if self.notes:
            lines.append("")
            lines.append("NOTES:")
            lines.extend(f"- {note}" for note in self.notes)
        return "\n".join(lines)

    def referenced_tables(self, sql: str) -> set[str]:
        """Lower-cased names of tables referenced in FROM/JOIN clauses."""
        ctes = {name.lower() for name in _CTE_PATTERN.findall(sql)}
        tables: set[str] = set()
        for statement in sqlparse.parse(sql):
            _collect_tables(statement, tables)
        return tables - ctes

    def unknown_tables(self, sql: str) -> list[str]:
        """Referenced tables missing from this descriptor, sorted."""
        return sorted(self.referenced_tables(sql) - self.table_names)


def _is_table_keyword(token) -> bool:
    if token.ttype is not Keyword:
        return False
    keyword = token.normalized.upper()
    return keyword == "FROM" or keyword.endswith("JOIN")


# Keywords that can follow FROM/JOIN without naming a table
_CLAUSE_KEYWORDS = frozenset(
    {
        "ON",
        "USING",
        "AS",
        "LATERAL",
        "GROUP BY",
        "ORDER BY",
        "HAVING",
        "LIMIT",
        "OFFSET",
        "FETCH",
        "UNION",
        "UNION ALL",
        "INTERSECT",
        "EXCEPT",
        "WINDOW",
    }
)


def _is_keyword_name(token) -> bool:
    """A table whose name sqlparse tokenizes as a keyword (e.g. archive)."""
    if token.ttype is not Keyword or _is_table_keyword(token):
        return False
    return token.normalized.upper() not in _CLAUSE_KEYWORDS


def _add_identifier(token, tables: set[str]) -> None:
    if any(isinstance(child, Parenthesis) for child in token.tokens):
        # Derived table: its own FROM clauses are collected by recursion
        return
    name = token.get_real_name()
    if name:
        tables.add(name.lower())


def _collect_tables(token_list: TokenList, tables: set[str]) -> None:
    expecting_table = False
    for token in token_list.tokens:
        if token.is_whitespace or token.ttype in Comment:
            continue
        if _is_table_keyword(token):
            expecting_table = True
            continue
        if expecting_table:
            if isinstance(token, IdentifierList):
                for identifier in token.get_identifiers():
                    if isinstance(identifier, Identifier):
                        _add_identifier(identifier, tables)
                    elif _is_keyword_name(identifier):
                        tables.add(identifier.value.lower())
            elif isinstance(token, Identifier):
                _add_identifier(token, tables)
            elif _is_keyword_name(token):
                tables.add(token.value.lower())
            expecting_table = False
        if not token.is_group or isinstance(token, Function):
            # EXTRACT(YEAR FROM col) is not a table reference
            continue
        if isinstance(token, Parenthesis) and not any(child.ttype is DML for child in token.tokens):
            continue
        _collect_tables(token, tables)


def load_schema(path: str | Path | None = None) -> SchemaDescriptor:
    """Load the descriptor at path, or the bundled one."""
    if path is None:
        return SchemaDescriptor.bundled()
    return SchemaDescriptor.from_yaml(path)
