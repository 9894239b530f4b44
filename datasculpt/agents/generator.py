"""
Query Generator

Turns a natural-language question into a GeneratedQuery.

One model attempt yields a tagged outcome:
    GenerationOk          parsed query, passed through
    GenerationParseError  model answered but not with usable JSON
    GenerationModelError  no provider, timeout or provider exception

Anything but GenerationOk resolves through fallback_query(), a total,
deterministic keyword match, so generation never fails because of the model.
The generated SQL is never trusted: it always goes through the safety gate.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from datasculpt.agents.shaper import infer_visualization
from datasculpt.dialects import Dialect, get_dialect
from datasculpt.llm.base import BaseLLMProvider
from datasculpt.llm.models import LLMMessage, LLMRequest
from datasculpt.models.query import VISUALIZATIONS, GeneratedQuery
from datasculpt.prompts.loader import PromptLoader
from datasculpt.schema import SchemaDescriptor

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8
PROMPT_TEMPLATE = "sql_generator.md"

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class GenerationOk:
    query: GeneratedQuery


@dataclass(frozen=True)
class GenerationParseError:
    reason: str
    raw: str


@dataclass(frozen=True)
class GenerationModelError:
    reason: str


GenerationOutcome = GenerationOk | GenerationParseError | GenerationModelError


@dataclass(frozen=True)
class GenerationResult:
    """Generated query plus how it was obtained."""

    query: GeneratedQuery
    used_fallback: bool = False
    warnings: list[str] = field(default_factory=list)


# ============================================================================
# Fallback queries
# ============================================================================


def _monthly_trend(dialect: Dialect) -> GeneratedQuery:
    month = dialect.month_bucket("bill_date")
    return GeneratedQuery(
        sql=(
            f"SELECT {month} AS month, SUM(net_value_inr) AS total_sales "
            f"FROM invoice_history WHERE bill_date IS NOT NULL "
            f"GROUP BY {month} ORDER BY month;"
        ),
        explanation=f"Generated a {dialect.label} query for monthly sales trend analysis from invoice history.",
        confidence=0.8,
        suggested_visualization="line",
    )


def _division_revenue(dialect: Dialect) -> GeneratedQuery:
    return GeneratedQuery(
        sql=(
            "SELECT division_name, SUM(net_value_inr) AS total_revenue, "
            "COUNT(DISTINCT bill_no) AS total_orders FROM invoice_history "
            "WHERE division_name IS NOT NULL GROUP BY division_name "
            "ORDER BY total_revenue DESC;"
        ),
        explanation=f"Generated a {dialect.label} query for division-wise revenue analysis.",
        confidence=0.8,
        suggested_visualization="bar",
    )


def _top_customers(dialect: Dialect) -> GeneratedQuery:
    return GeneratedQuery(
        sql=(
            "SELECT customer_name, SUM(net_value_inr) AS total_revenue, "
            "COUNT(DISTINCT bill_no) AS total_orders FROM invoice_history "
            "WHERE customer_name IS NOT NULL GROUP BY customer_name "
            f"ORDER BY total_revenue DESC {dialect.limit(10)};"
        ),
        explanation=f"Generated a {dialect.label} query for top customers by revenue.",
        confidence=0.8,
        suggested_visualization="bar",
    )


def _top_materials(dialect: Dialect) -> GeneratedQuery:
    return GeneratedQuery(
        sql=(
            "SELECT material_desc, SUM(invoice_qty) AS total_quantity, "
            "SUM(net_value_inr) AS total_revenue FROM invoice_history "
            "WHERE material_desc IS NOT NULL GROUP BY material_desc "
            f"ORDER BY total_revenue DESC {dialect.limit(10)};"
        ),
        explanation=f"Generated a {dialect.label} query for top materials/products by revenue.",
        confidence=0.8,
        suggested_visualization="bar",
    )


def _division_share(dialect: Dialect) -> GeneratedQuery:
    return GeneratedQuery(
        sql=(
            "SELECT division_name, SUM(net_value_inr) AS total_sales FROM invoice_history "
            "WHERE division_name IS NOT NULL GROUP BY division_name "
            "ORDER BY total_sales DESC;"
        ),
        explanation=f"Generated a {dialect.label} query for division-wise sales distribution.",
        confidence=0.8,
        suggested_visualization="pie",
    )


def _division_performance(dialect: Dialect) -> GeneratedQuery:
    return GeneratedQuery(
        sql=(
            "SELECT division_name, SUM(net_value_inr) AS total_revenue, "
            "SUM(invoice_qty) AS total_quantity, COUNT(DISTINCT bill_no) AS total_orders "
            "FROM invoice_history WHERE division_name IS NOT NULL "
            "GROUP BY division_name ORDER BY total_revenue DESC;"
        ),
        explanation=f"Generated a {dialect.label} query for comprehensive division performance analysis.",
        confidence=0.7,
        suggested_visualization="bar",
    )


FALLBACK_RULES: list[tuple[tuple[str, ...], Callable[[Dialect], GeneratedQuery]]] = [
    (("month", "trend", "time"), _monthly_trend),
    (("division", "brand"), _division_revenue),
    (("customer", "top"), _top_customers),
    (("material", "product"), _top_materials),
    (("pie", "proportion"), _division_share),
]


def fallback_query(text: str, kind: str) -> GeneratedQuery:
    """Deterministic query for a question, first keyword match wins."""
    dialect = get_dialect(kind)
    lowered = (text or "").lower()
    for keywords, build in FALLBACK_RULES:
        if any(keyword in lowered for keyword in keywords):
            return build(dialect)
    return _division_performance(dialect)


# ============================================================================
# Response parsing
# ============================================================================


def _coerce_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if math.isnan(confidence):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, confidence))


def parse_response(content: str, text: str) -> GenerationOk | GenerationParseError:
    """
    Parse model output into a GeneratedQuery.

    Accepts a JSON object, optionally inside a Markdown code fence. The SQL is
    read from "sqlQuery" (or "sql"); an invalid visualization hint is replaced
    by keyword inference over the question.
    """
    raw = content or ""
    fenced = _FENCED_JSON.search(raw)
    if fenced:
        json_str = fenced.group(1)
    else:
        bare = _BARE_JSON.search(raw)
        if not bare:
            return GenerationParseError(reason="No JSON object in model response", raw=raw)
        json_str = bare.group(0)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        return GenerationParseError(reason=f"Invalid JSON in model response: {e}", raw=raw)
    if not isinstance(data, dict):
        return GenerationParseError(reason="Model response is not a JSON object", raw=raw)

    sql = data.get("sqlQuery") or data.get("sql")
    if not isinstance(sql, str) or not sql.strip():
        return GenerationParseError(reason="Model response has no SQL", raw=raw)

    visualization = str(data.get("suggestedVisualization") or "").strip().lower()
    if visualization not in VISUALIZATIONS:
        visualization = infer_visualization(text)

    explanation = data.get("explanation")
    return GenerationOk(
        GeneratedQuery(
            sql=sql.strip(),
            explanation=explanation if isinstance(explanation, str) else "",
            confidence=_coerce_confidence(data.get("confidence", DEFAULT_CONFIDENCE)),
            suggested_visualization=visualization,
        )
    )


# ============================================================================
# Generator
# ============================================================================


class QueryGenerator:
    """
    Natural language to SQL with a deterministic fallback.

    Args:
        provider: LLM provider, or None for fallback-only generation
        schema: Schema descriptor embedded in prompts
        prompt_loader: Template loader (default: bundled templates)
        timeout: Wall-clock limit for one model call, in seconds
    """

    def __init__(
        self,
        provider: BaseLLMProvider | None,
        schema: SchemaDescriptor,
        prompt_loader: PromptLoader | None = None,
        timeout: float = 30,
    ):
        self.provider = provider
        self.schema = schema
        self.prompt_loader = prompt_loader or PromptLoader()
        self.timeout = timeout

    def build_prompt(self, text: str, kind: str, schema: SchemaDescriptor | None = None) -> str:
        descriptor = schema or self.schema
        return self.prompt_loader.render(
            PROMPT_TEMPLATE,
            business_name=descriptor.business_name,
            dialect=get_dialect(kind),
            schema=descriptor.render(),
            question=text.strip(),
        )

    async def attempt(
        self, text: str, kind: str, schema: SchemaDescriptor | None = None
    ) -> GenerationOutcome:
        """Single model call, classified into a tagged outcome."""
        if self.provider is None:
            return GenerationModelError(reason="No LLM provider configured")

        request = LLMRequest(
            messages=[LLMMessage(role="user", content=self.build_prompt(text, kind, schema))]
        )
        try:
            response = await asyncio.wait_for(self.provider.generate(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            return GenerationModelError(reason=f"Model call timed out after {self.timeout}s")
        except Exception as e:
            return GenerationModelError(reason=f"{type(e).__name__}: {e}")

        return parse_response(response.content, text)

    async def run(
        self, text: str, kind: str, schema: SchemaDescriptor | None = None
    ) -> GenerationResult:
        """
        Generate a query and report fallback use and schema warnings.

        Raises:
            ValueError: If text is blank or kind is unsupported
        """
        if not text or not text.strip():
            raise ValueError("Query text must not be empty")
        get_dialect(kind)

        outcome = await self.attempt(text, kind, schema)
        if isinstance(outcome, GenerationOk):
            warnings = self._shape_warnings(outcome.query.sql, schema or self.schema)
            logger.info(
                "Generated SQL from model",
                extra={"kind": kind, "confidence": outcome.query.confidence},
            )
            return GenerationResult(query=outcome.query, warnings=warnings)

        logger.warning(
            f"Falling back to template query: {outcome.reason}",
            extra={"kind": kind, "outcome": type(outcome).__name__},
        )
        return GenerationResult(query=fallback_query(text, kind), used_fallback=True)

    async def generate(
        self, text: str, kind: str, schema: SchemaDescriptor | None = None
    ) -> GeneratedQuery:
        """Generate a query for the question in the given dialect."""
        result = await self.run(text, kind, schema)
        return result.query

    def _shape_warnings(self, sql: str, schema: SchemaDescriptor) -> list[str]:
        unknown = schema.unknown_tables(sql)
        if not unknown:
            return []
        message = f"Query references tables not in the schema: {', '.join(unknown)}"
        logger.warning(message, extra={"unknown_tables": unknown})
        return [message]
