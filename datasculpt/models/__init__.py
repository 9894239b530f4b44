"""
DataSculpt Models Module

Pydantic models for type-safe data validation throughout the application.

Available Models:
    Data sources:
        - DataSourceConfig: Connection parameters of one database
        - DataSource: Registry entry (config + status + active flag)
        - DataSourceView: Password-free API representation
        - ConnectionConfigPayload: Connection override sent by the client

    Query pipeline:
        - GeneratedQuery: Generator output
        - QueryClassification: Safety gate intent tag
        - AskResult: End-to-end answer

    Errors:
        - SafetyRejection: Non-read SQL refused before execution
        - ExecutionFailure: Database or data source failure

    API:
        - ExecuteQueryRequest / ExecuteQueryResponse
        - GenerateRequest / AskRequest
        - HealthResponse, TestConnectionResponse, ErrorResponse
"""

from datasculpt.models.api import (
    AskRequest,
    ErrorResponse,
    ExecuteQueryRequest,
    ExecuteQueryResponse,
    GenerateRequest,
    HealthResponse,
    TestConnectionResponse,
)
from datasculpt.models.datasource import (
    DEFAULT_PORTS,
    ConnectionConfigPayload,
    DatabaseKind,
    DataSource,
    DataSourceConfig,
    DataSourceCreate,
    DataSourceView,
)
from datasculpt.models.errors import AgentError, ExecutionFailure, SafetyRejection
from datasculpt.models.query import (
    VISUALIZATIONS,
    AskResult,
    GeneratedQuery,
    QueryClassification,
    Visualization,
)

__all__ = [
    "AgentError",
    "AskRequest",
    "AskResult",
    "ConnectionConfigPayload",
    "DEFAULT_PORTS",
    "DataSource",
    "DataSourceConfig",
    "DataSourceCreate",
    "DataSourceView",
    "DatabaseKind",
    "ErrorResponse",
    "ExecuteQueryRequest",
    "ExecuteQueryResponse",
    "ExecutionFailure",
    "GenerateRequest",
    "GeneratedQuery",
    "HealthResponse",
    "QueryClassification",
    "SafetyRejection",
    "TestConnectionResponse",
    "VISUALIZATIONS",
    "Visualization",
]
