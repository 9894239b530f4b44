"""Unit tests for the generate-sql and ask endpoints."""

import json

import pytest

from datasculpt.connectors.base import QueryResult
from datasculpt.llm.models import LLMResponse, LLMUsage


def _llm_answer(payload: dict | str) -> LLMResponse:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return LLMResponse(
        content=content,
        model="test-model",
        usage=LLMUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
        finish_reason="stop",
        provider="mock",
    )


class TestGenerateSql:
    def test_model_query(self, client, mock_llm_provider):
        mock_llm_provider.generate.return_value = _llm_answer(
            {
                "sqlQuery": "SELECT customer_name FROM invoice_history",
                "explanation": "Customers",
                "confidence": 0.85,
                "suggestedVisualization": "bar",
            }
        )

        response = client.post("/api/generate-sql", json={"query": "list customers"})

        assert response.status_code == 200
        assert response.json() == {
            "sql": "SELECT customer_name FROM invoice_history",
            "explanation": "Customers",
            "confidence": 0.85,
            "suggestedVisualization": "bar",
        }

    def test_model_failure_still_answers(self, client, mock_llm_provider):
        mock_llm_provider.generate.side_effect = RuntimeError("service unavailable")

        response = client.post(
            "/api/generate-sql",
            json={"query": "monthly revenue trend", "databaseType": "postgresql"},
        )

        assert response.status_code == 200
        body = response.json()
        assert "DATE_TRUNC" in body["sql"]
        assert body["suggestedVisualization"] == "line"

    def test_unsupported_database_type(self, client):
        response = client.post(
            "/api/generate-sql", json={"query": "top customers", "databaseType": "oracle"}
        )

        assert response.status_code == 400

    @pytest.mark.parametrize("body", [{}, {"query": ""}])
    def test_missing_question(self, client, body):
        response = client.post("/api/generate-sql", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    def test_blank_question(self, client):
        response = client.post("/api/generate-sql", json={"query": "   "})

        assert response.status_code == 400
        assert response.json() == {"error": "Query text must not be empty"}


class TestAsk:
    def test_total_sales_by_brand(self, client, mock_llm_provider, mock_connector, mysql_config):
        connector, factory = mock_connector
        mock_llm_provider.generate.return_value = _llm_answer(
            {
                "sqlQuery": "SELECT brand_name, SUM(net_value_inr) AS total_sales FROM invoice_history GROUP BY brand_name",
                "confidence": 0.9,
                "suggestedVisualization": "bar",
            }
        )
        connector.execute.return_value = QueryResult(
            rows=[{"brand_name": "Acme", "total_sales": 1000}],
            row_count=1,
            columns=["brand_name", "total_sales"],
            execution_time_ms=1.0,
        )

        response = client.post(
            "/api/ask", json={"query": "Show total sales by brand", "databaseType": "mysql"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["series"] == [{"name": "Acme", "value": 1000}]
        assert body["chartType"] == "bar"
        assert body["classification"] == "read"
        assert body["usedFallbackSeries"] is False
        assert body["query"]["suggestedVisualization"] == "bar"
        assert factory.call_args.args[0] is mysql_config

    def test_destructive_sql_is_rejected(self, client, mock_llm_provider, mock_connector):
        _, factory = mock_connector
        mock_llm_provider.generate.return_value = _llm_answer({"sqlQuery": "DELETE FROM sales"})

        response = client.post("/api/ask", json={"query": "clear sales"})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Destructive operations are not allowed",
            "classification": "destructive",
        }
        factory.assert_not_called()

    def test_connection_override(self, client, mock_llm_provider, mock_connector):
        _, factory = mock_connector
        mock_llm_provider.generate.side_effect = RuntimeError("no model")

        response = client.post(
            "/api/ask",
            json={
                "query": "top customers",
                "databaseType": "mysql",
                "connectionConfig": {
                    "type": "postgresql",
                    "host": "pg.other",
                    "database": "sales",
                    "username": "reader",
                    "password": "pw",
                },
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert "FETCH FIRST 10 ROWS ONLY" in body["query"]["sql"]
        assert body["usedFallbackQuery"] is True
        assert body["usedFallbackSeries"] is True
        config = factory.call_args.args[0]
        assert (config.kind, config.host, config.port) == ("postgresql", "pg.other", 5432)
