"""Unit tests for health, schema, dashboard and root endpoints."""

from datasculpt import __version__


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "message": "Backend server is running",
            "version": __version__,
            "llmProvider": "mock",
        }

    def test_health_without_provider(self, client, state):
        state["provider"] = None

        response = client.get("/api/health")

        assert response.json()["llmProvider"] is None


class TestSchema:
    def test_schema(self, client):
        response = client.get("/api/schema")

        assert response.status_code == 200
        body = response.json()
        assert body["business_name"] == "LUX Industries"
        assert "invoice_history" in body["tables"]

    def test_schema_not_loaded(self, client, state):
        state["schema"] = None

        assert client.get("/api/schema").status_code == 503


class TestDashboard:
    def test_fixed_payload(self, client):
        response = client.get("/api/dashboard-data", params={"type": "postgresql"})

        assert response.status_code == 200
        body = response.json()
        assert body["totalRevenue"] == 24500000
        assert [chart["type"] for chart in body["charts"]] == ["bar", "line", "pie"]
        assert body["topProducts"][0]["id"] == "MAT001"


def test_root(client):
    assert client.get("/").json()["name"] == "DataSculpt API"


def test_pipeline_unavailable(client, state):
    state["pipeline"] = None

    response = client.post("/api/execute-query", json={"sqlQuery": "SELECT 1"})

    assert response.status_code == 503
    assert response.json() == {"error": "Pipeline not initialized"}
