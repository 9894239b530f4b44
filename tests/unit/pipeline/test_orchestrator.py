"""
Unit tests for AnalyticsPipeline.

Tests the ask chain end to end with a mocked model and database:
- Generate -> execute -> shape ordering and kind propagation
- Safety rejections stop before any connection
- Fallback query and fallback series paths
- Wiring helpers (registry, provider, pipeline)
"""

import asyncio
import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from datasculpt.agents.gate import SafetyGate
from datasculpt.agents.generator import QueryGenerator, fallback_query
from datasculpt.config import Settings
from datasculpt.connectors.base import QueryResult
from datasculpt.llm.models import LLMResponse, LLMUsage
from datasculpt.models.errors import ExecutionFailure, SafetyRejection
from datasculpt.models.query import QueryClassification
from datasculpt.pipeline.orchestrator import (
    AnalyticsPipeline,
    build_pipeline,
    create_provider,
    create_registry,
    environment_defaults,
)
from datasculpt.schema import SchemaDescriptor
from datasculpt.sources.registry import DataSourceRegistry


def _llm_answer(payload: dict) -> LLMResponse:
    return LLMResponse(
        content=json.dumps(payload),
        model="test-model",
        usage=LLMUsage(prompt_tokens=100, completion_tokens=40, total_tokens=140),
        finish_reason="stop",
        provider="mock",
    )


@pytest.fixture
def pipeline_factory(mock_llm_provider, mock_connector, mysql_config, postgres_config):
    connector, factory = mock_connector
    configs = {"mysql": mysql_config, "postgresql": postgres_config}
    resolver = MagicMock(side_effect=lambda kind: configs.get(kind))

    def _build(provider=mock_llm_provider):
        generator = QueryGenerator(provider=provider, schema=SchemaDescriptor.bundled())
        gate = SafetyGate(resolver=resolver, connector_factory=factory)
        return AnalyticsPipeline(generator=generator, gate=gate)

    return _build, connector, factory, resolver


class TestAsk:
    @pytest.mark.asyncio
    async def test_total_sales_by_brand(self, pipeline_factory, mock_llm_provider, mysql_config):
        build, connector, factory, _ = pipeline_factory
        sql = (
            "SELECT brand_name, SUM(net_value_inr) AS total_sales FROM invoice_history "
            "GROUP BY brand_name ORDER BY total_sales DESC LIMIT 10"
        )
        mock_llm_provider.generate.return_value = _llm_answer(
            {
                "sqlQuery": sql,
                "explanation": "Total sales per brand",
                "confidence": 0.9,
                "suggestedVisualization": "bar",
            }
        )
        connector.execute.return_value = QueryResult(
            rows=[{"brand_name": "Acme", "total_sales": 1000}],
            row_count=1,
            columns=["brand_name", "total_sales"],
            execution_time_ms=3.0,
        )

        result = await build().ask("Show total sales by brand", "mysql")

        assert result.series == [{"name": "Acme", "value": 1000}]
        assert result.classification is QueryClassification.READ
        assert result.chart_type == "bar"
        assert result.total == 1
        assert result.used_fallback_query is False
        assert result.used_fallback_series is False
        assert result.summary.startswith("Found 1 record")
        connector.execute.assert_awaited_once_with(sql)
        assert factory.call_args.args[0] is mysql_config

    @pytest.mark.asyncio
    async def test_delete_is_rejected_before_connecting(self, pipeline_factory, mock_llm_provider):
        build, connector, factory, resolver = pipeline_factory
        mock_llm_provider.generate.return_value = _llm_answer({"sqlQuery": "DELETE FROM sales"})

        with pytest.raises(SafetyRejection) as exc_info:
            await build().ask("remove all sales", "mysql")

        assert exc_info.value.classification is QueryClassification.DESTRUCTIVE
        factory.assert_not_called()
        resolver.assert_called_once_with("mysql")
        connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kind,month_expression",
        [
            ("mysql", "DATE_FORMAT(bill_date, '%Y-%m')"),
            ("postgresql", "TO_CHAR(DATE_TRUNC('month', bill_date), 'YYYY-MM')"),
        ],
    )
    async def test_monthly_trend_fallback(self, pipeline_factory, kind, month_expression):
        build, connector, factory, _ = pipeline_factory
        connector.execute.return_value = QueryResult(
            rows=[
                {"month": "2024-01", "total_sales": Decimal("425000.00")},
                {"month": "2024-02", "total_sales": Decimal("438000.00")},
            ],
            row_count=2,
            columns=["month", "total_sales"],
            execution_time_ms=4.0,
        )

        result = await build(provider=None).ask("monthly revenue trend", kind)

        assert result.used_fallback_query is True
        assert result.query == fallback_query("monthly revenue trend", kind)
        assert month_expression in result.query.sql
        assert result.chart_type == "line"
        assert result.series == [
            {"name": "2024-01", "value": 425000.0},
            {"name": "2024-02", "value": 438000.0},
        ]
        assert factory.call_args.args[0].kind == kind

    @pytest.mark.asyncio
    async def test_empty_result_uses_fallback_series(self, pipeline_factory):
        build, _, _, _ = pipeline_factory

        result = await build(provider=None).ask("top customers", "mysql")

        assert result.used_fallback_series is True
        assert result.series[0]["name"] == "ABC Retail Store"
        assert result.summary == "No data found for this query."
        assert result.data == []

    @pytest.mark.asyncio
    async def test_explicit_config_sets_kind(self, pipeline_factory, postgres_config):
        build, _, factory, resolver = pipeline_factory

        result = await build(provider=None).ask("top customers", "mysql", config=postgres_config)

        assert "FETCH FIRST 10 ROWS ONLY" in result.query.sql
        assert factory.call_args.args[0] is postgres_config
        resolver.assert_not_called()

    @pytest.mark.asyncio
    async def test_execution_failure_propagates(self, pipeline_factory):
        build, _, _, resolver = pipeline_factory
        resolver.side_effect = lambda kind: None

        with pytest.raises(ExecutionFailure):
            await build(provider=None).ask("top customers", "mysql")

    @pytest.mark.asyncio
    async def test_missing_source_fails_before_model_call(
        self, pipeline_factory, mock_llm_provider
    ):
        build, _, _, resolver = pipeline_factory
        resolver.side_effect = lambda kind: None

        with pytest.raises(ExecutionFailure):
            await build().ask("top customers", "mysql")

        mock_llm_provider.generate.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   "])
    async def test_blank_question(self, pipeline_factory, text):
        build, _, factory, resolver = pipeline_factory

        with pytest.raises(ValueError, match="must not be empty"):
            await build(provider=None).ask(text, "mysql")

        resolver.assert_not_called()
        factory.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("switch_to", ["mysql-2", "pg-2"])
    async def test_source_activated_mid_question_is_not_used(
        self, tmp_path, mock_llm_provider, mock_connector, mysql_config, postgres_config, switch_to
    ):
        connector, factory = mock_connector
        registry = DataSourceRegistry(tmp_path / "sources.json", prober=AsyncMock())
        await registry.add(mysql_config)
        await registry.add(mysql_config.model_copy(update={"id": "mysql-2"}))
        await registry.add(postgres_config.model_copy(update={"id": "pg-2"}))
        pipeline = AnalyticsPipeline(
            generator=QueryGenerator(provider=mock_llm_provider, schema=SchemaDescriptor.bundled()),
            gate=SafetyGate(resolver=registry.resolve, connector_factory=factory),
        )
        model_called = asyncio.Event()
        release_model = asyncio.Event()

        async def slow_generate(request):
            model_called.set()
            await release_model.wait()
            return _llm_answer({"sqlQuery": "SELECT brand_name FROM invoice_history LIMIT 10"})

        mock_llm_provider.generate.side_effect = slow_generate
        ask = asyncio.create_task(pipeline.ask("sales by brand", "mysql"))
        await model_called.wait()
        registry.activate(switch_to)
        release_model.set()
        result = await ask

        assert factory.call_count == 1
        assert factory.call_args.args[0].id == "mysql-1"
        assert result.query.sql == "SELECT brand_name FROM invoice_history LIMIT 10"

    @pytest.mark.asyncio
    async def test_schema_warnings_surface(self, pipeline_factory, mock_llm_provider):
        build, _, _, _ = pipeline_factory
        mock_llm_provider.generate.return_value = _llm_answer(
            {"sqlQuery": "SELECT brand, SUM(amount) AS sales FROM sales GROUP BY brand"}
        )

        result = await build().ask("sales by brand", "mysql")

        assert result.warnings == ["Query references tables not in the schema: sales"]


class TestWiring:
    def test_environment_defaults(self):
        settings = Settings(
            database={
                "postgres_url": "postgresql://app:pw@pg.internal:5432/postgres",
                "mysql_url": "mysql://app:pw@mysql.internal:3306/lux_industries",
            }
        )

        defaults = environment_defaults(settings)

        assert defaults["postgresql"].host == "pg.internal"
        assert defaults["mysql"].database == "lux_industries"

    def test_no_environment_defaults(self):
        assert environment_defaults(Settings()) == {}

    def test_create_registry_uses_settings(self, tmp_path):
        settings = Settings(registry={"path": tmp_path / "custom.json"})

        registry = create_registry(settings)

        assert registry.path == tmp_path / "custom.json"

    def test_missing_key_means_no_provider(self):
        settings = Settings(llm={"default_provider": "openai"})

        assert create_provider(settings) is None

    def test_build_pipeline(self, tmp_path):
        settings = Settings(registry={"path": tmp_path / "sources.json"})
        registry = create_registry(settings)

        pipeline = build_pipeline(settings, registry, provider=None)

        assert pipeline.generator.provider is None
        assert pipeline.generator.timeout == settings.llm.timeout
        assert pipeline.gate.resolver == registry.resolve
        assert pipeline.gate.statement_timeout == settings.database.statement_timeout
        assert "invoice_history" in pipeline.generator.schema.table_names
