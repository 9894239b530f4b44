"""
Query Execution Routes

Read-only SQL execution for the web client. Both endpoints go through the
safety gate; they differ only in the database kind used when the request
carries no connection override.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from datasculpt import dialects
from datasculpt.connectors.base import ConnectorError
from datasculpt.connectors.factory import probe_connection
from datasculpt.models.api import (
    ExecuteQueryRequest,
    ExecuteQueryResponse,
    TestConnectionResponse,
)
from datasculpt.models.datasource import ConnectionConfigPayload, DatabaseKind

logger = logging.getLogger(__name__)

router = APIRouter()


async def _execute(payload: ExecuteQueryRequest, default_kind: DatabaseKind) -> dict[str, Any]:
    from datasculpt.api.main import get_pipeline

    if not payload.sql_query.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SQL query is required")

    config = None
    if payload.connection_config is not None:
        try:
            config = payload.connection_config.to_config(default_kind)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    gate = get_pipeline().gate
    result = await gate.execute(payload.sql_query, config=config, kind=default_kind)
    # Rows may hold Decimal and datetime values; FastAPI's encoder renders them.
    return ExecuteQueryResponse(data=result.rows, total=result.row_count).model_dump()


@router.post("/execute-query", response_model=None)
async def execute_query(payload: ExecuteQueryRequest) -> dict[str, Any]:
    """Execute a read query (PostgreSQL unless connectionConfig says otherwise)."""
    return await _execute(payload, default_kind="postgresql")


@router.post("/mysql/execute-query", response_model=None)
async def execute_mysql_query(payload: ExecuteQueryRequest) -> dict[str, Any]:
    """Execute a read query (MySQL unless connectionConfig says otherwise)."""
    return await _execute(payload, default_kind="mysql")


def _failed(error: str) -> dict[str, Any]:
    return TestConnectionResponse(success=False, error=error).model_dump(exclude_none=True)


@router.post("/test-connection", response_model=None)
async def test_connection(payload: ConnectionConfigPayload) -> dict[str, Any]:
    """
    Probe a database with SELECT 1.

    Returns:
        200 {success: true, message}
        400 {success: false, error} for missing parameters or unsupported type
        500 {success: false, error} when the database is unreachable
    """
    from datasculpt.api.main import app_state

    if payload.missing_fields():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_failed("Missing required connection parameters"),
        )
    try:
        dialect = dialects.get_dialect(payload.type)
        config = payload.to_config(dialect.kind, name="connection test")
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_failed("Unsupported database type"),
        ) from exc

    settings = app_state.get("settings")
    connect_timeout = settings.database.connect_timeout if settings is not None else 10
    try:
        await probe_connection(config, connect_timeout=connect_timeout)
    except ConnectorError as exc:
        logger.error(f"Connection test failed for {config.describe()}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_failed(str(exc) or "Connection test failed"),
        ) from exc

    return TestConnectionResponse(
        success=True, message=f"{dialect.label} connection successful"
    ).model_dump(exclude_none=True)
