"""Fixtures shared by the API tests."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from datasculpt.agents.gate import SafetyGate
from datasculpt.agents.generator import QueryGenerator
from datasculpt.api.main import app
from datasculpt.pipeline.orchestrator import AnalyticsPipeline
from datasculpt.schema import SchemaDescriptor


@pytest.fixture
def resolver(mysql_config, postgres_config):
    configs = {"mysql": mysql_config, "postgresql": postgres_config}
    return MagicMock(side_effect=lambda kind: configs.get(kind))


@pytest.fixture
def pipeline(mock_connector, resolver, mock_llm_provider):
    _, factory = mock_connector
    schema = SchemaDescriptor.bundled()
    return AnalyticsPipeline(
        generator=QueryGenerator(provider=mock_llm_provider, schema=schema),
        gate=SafetyGate(resolver=resolver, connector_factory=factory),
    )


@pytest.fixture
def state(pipeline, mock_llm_provider):
    """Application state as the lifespan would build it (registry added per test)."""
    return {
        "settings": None,
        "registry": None,
        "provider": mock_llm_provider,
        "schema": pipeline.generator.schema,
        "pipeline": pipeline,
    }


@pytest.fixture
def client(state):
    with patch("datasculpt.api.main.app_state", state):
        yield TestClient(app)
