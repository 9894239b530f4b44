"""
API Request/Response Models

Pydantic models for the FastAPI endpoints. Field aliases follow the web
client's camelCase JSON.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from datasculpt.models.datasource import ConnectionConfigPayload


class ExecuteQueryRequest(BaseModel):
    """Body of POST /api/execute-query and /api/mysql/execute-query."""

    sql_query: str = Field(default="", alias="sqlQuery", description="SQL to execute")
    connection_config: ConnectionConfigPayload | None = Field(
        None, alias="connectionConfig", description="Optional connection override"
    )

    model_config = ConfigDict(populate_by_name=True)


class ExecuteQueryResponse(BaseModel):
    """Rows returned by a read query."""

    data: list[dict[str, Any]]
    total: int
    success: bool = True


class GenerateRequest(BaseModel):
    """Body of POST /api/generate-sql."""

    query: str = Field(..., min_length=1, description="Natural-language question")
    database_type: str = Field(default="mysql", alias="databaseType")

    model_config = ConfigDict(populate_by_name=True)


class AskRequest(GenerateRequest):
    """Body of POST /api/ask."""

    connection_config: ConnectionConfigPayload | None = Field(None, alias="connectionConfig")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Human-readable status")
    version: str = Field(..., description="API version")
    llm_provider: str | None = Field(None, serialization_alias="llmProvider")


class TestConnectionResponse(BaseModel):
    """Result of a connectivity probe."""

    success: bool
    message: str | None = None
    error: str | None = None


class ErrorResponse(BaseModel):
    """Error body shared by all endpoints."""

    error: str
    details: str | None = None
    classification: str | None = None
