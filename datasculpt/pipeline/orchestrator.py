"""
DataSculpt Pipeline Orchestrator

Sequential ask chain:
    QueryGenerator -> SafetyGate -> shaper -> summary

The connection config (explicit, else resolved through the safety gate) and
its database kind are captured once at the start of an ask and passed to
every stage.
"""

import logging
import time

from datasculpt.agents import shaper
from datasculpt.agents.gate import SafetyGate
from datasculpt.agents.generator import QueryGenerator
from datasculpt.config import Settings
from datasculpt.connectors.factory import config_from_url
from datasculpt.dialects import get_dialect
from datasculpt.llm.base import BaseLLMProvider
from datasculpt.llm.factory import LLMProviderFactory
from datasculpt.models.datasource import DataSourceConfig
from datasculpt.models.query import AskResult, QueryClassification
from datasculpt.schema import SchemaDescriptor, load_schema
from datasculpt.sources.registry import DataSourceRegistry

logger = logging.getLogger(__name__)


class AnalyticsPipeline:
    """Runs one natural-language question through generate, execute and shape."""

    def __init__(self, generator: QueryGenerator, gate: SafetyGate):
        self.generator = generator
        self.gate = gate

    async def ask(
        self,
        text: str,
        kind: str,
        config: DataSourceConfig | None = None,
    ) -> AskResult:
        """
        Answer a question with data.

        Raises:
            ValueError: Blank question or unsupported kind
            SafetyRejection: Generated SQL is not a read
            ExecutionFailure: No data source for the kind, or the database
                could not run the query
        """
        if not text or not text.strip():
            raise ValueError("Query text must not be empty")
        get_dialect(kind)
        # Connection parameters are fixed before the model call; a source
        # activated meanwhile applies to the next question.
        if config is None:
            config = self.gate.resolve_config(kind)
        kind = config.kind
        start_time = time.perf_counter()

        generation = await self.generator.run(text, kind)
        query = generation.query

        result = await self.gate.execute(query.sql, config=config, kind=kind)

        series = shaper.shape(result.rows, text)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Answered question in {elapsed_ms:.1f}ms",
            extra={
                "kind": kind,
                "row_count": result.row_count,
                "used_fallback_query": generation.used_fallback,
                "used_fallback_series": not result.rows,
            },
        )

        return AskResult(
            query=query,
            classification=QueryClassification.READ,
            data=result.rows,
            total=result.row_count,
            series=series,
            chart_type=query.suggested_visualization,
            summary=shaper.summarize(result.rows),
            used_fallback_series=not result.rows,
            used_fallback_query=generation.used_fallback,
            warnings=generation.warnings,
        )


def environment_defaults(settings: Settings) -> dict[str, DataSourceConfig]:
    """Default data sources from DATABASE_POSTGRES_URL / DATABASE_MYSQL_URL."""
    defaults: dict[str, DataSourceConfig] = {}
    if settings.database.postgres_url:
        defaults["postgresql"] = config_from_url(
            str(settings.database.postgres_url), name="Environment PostgreSQL"
        )
    if settings.database.mysql_url:
        defaults["mysql"] = config_from_url(str(settings.database.mysql_url), name="Environment MySQL")
    return defaults


def create_registry(settings: Settings) -> DataSourceRegistry:
    return DataSourceRegistry(
        settings.registry.path,
        encryption_key=settings.registry.credentials_key,
        defaults=environment_defaults(settings),
    )


def create_provider(settings: Settings) -> BaseLLMProvider | None:
    """Configured LLM provider, or None when it cannot be created."""
    try:
        return LLMProviderFactory.create_default_provider(settings.llm)
    except ValueError as e:
        logger.warning(f"LLM provider unavailable, using fallback queries only: {e}")
        return None


def build_pipeline(
    settings: Settings,
    registry: DataSourceRegistry,
    provider: BaseLLMProvider | None,
    schema: SchemaDescriptor | None = None,
) -> AnalyticsPipeline:
    """Wire generator and gate from settings."""
    generator = QueryGenerator(
        provider=provider,
        schema=schema or load_schema(settings.schema_path),
        timeout=settings.llm.timeout,
    )
    gate = SafetyGate(
        resolver=registry.resolve,
        connect_timeout=settings.database.connect_timeout,
        statement_timeout=settings.database.statement_timeout,
    )
    return AnalyticsPipeline(generator=generator, gate=gate)
