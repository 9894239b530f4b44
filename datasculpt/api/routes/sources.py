"""Data source registry routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from datasculpt.connectors.base import ConnectorError
from datasculpt.connectors.factory import introspect_connection
from datasculpt.models.datasource import DataSourceCreate, DataSourceView
from datasculpt.models.errors import ExecutionFailure
from datasculpt.schema import SchemaDescriptor
from datasculpt.sources.registry import DataSourceRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_registry() -> DataSourceRegistry:
    from datasculpt.api.main import get_registry

    return get_registry()


def _not_found(source_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Data source not found: {source_id}",
    )


@router.get("/data-sources", response_model=list[DataSourceView])
async def list_data_sources() -> list[DataSourceView]:
    """List registered data sources (passwords are never returned)."""
    return [DataSourceView.from_source(source) for source in _get_registry().list()]


@router.post(
    "/data-sources", response_model=DataSourceView, status_code=status.HTTP_201_CREATED
)
async def create_data_source(payload: DataSourceCreate) -> DataSourceView:
    """Register a data source. Connectivity is probed immediately."""
    registry = _get_registry()
    missing = [field for field in payload.missing_fields() if field != "password"]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing connection parameters: {', '.join(missing)}",
        )
    try:
        config = payload.to_config(payload.type, name=payload.name)
        source = await registry.add(config)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DataSourceView.from_source(source)


@router.get("/data-sources/{source_id}", response_model=DataSourceView)
async def get_data_source(source_id: str) -> DataSourceView:
    """Retrieve a single data source by ID."""
    try:
        return DataSourceView.from_source(_get_registry().get(source_id))
    except KeyError as exc:
        raise _not_found(source_id) from exc


@router.get("/data-sources/{source_id}/schema", response_model=SchemaDescriptor)
async def introspect_data_source(source_id: str) -> SchemaDescriptor:
    """
    Read the live tables of a data source into a schema descriptor.

    The result can be saved as YAML and loaded through SCHEMA_PATH.
    """
    from datasculpt.api.main import app_state

    try:
        config = _get_registry().get(source_id).config
    except KeyError as exc:
        raise _not_found(source_id) from exc

    settings = app_state.get("settings")
    database = settings.database if settings is not None else None
    try:
        tables = await introspect_connection(
            config,
            connect_timeout=database.connect_timeout if database else 10,
            timeout=database.statement_timeout if database else 30,
        )
    except ConnectorError as exc:
        logger.error(f"Introspection of {config.describe()} failed: {exc}")
        raise ExecutionFailure("Schema introspection failed", details=str(exc)) from exc
    return SchemaDescriptor.from_tables(tables, name=config.database, business_name=config.name)


@router.put("/data-sources/{source_id}/activate", response_model=DataSourceView)
async def activate_data_source(source_id: str) -> DataSourceView:
    """Make a data source the active one."""
    try:
        return DataSourceView.from_source(_get_registry().activate(source_id))
    except KeyError as exc:
        raise _not_found(source_id) from exc


@router.post("/data-sources/{source_id}/refresh", response_model=DataSourceView)
async def refresh_data_source(source_id: str) -> DataSourceView:
    """Re-probe a data source and update its status."""
    try:
        return DataSourceView.from_source(await _get_registry().refresh(source_id))
    except KeyError as exc:
        raise _not_found(source_id) from exc


@router.delete("/data-sources/{source_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_data_source(source_id: str) -> Response:
    """Remove a data source."""
    try:
        _get_registry().remove(source_id)
    except KeyError as exc:
        raise _not_found(source_id) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
