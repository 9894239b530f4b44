"""
Assistant Routes

Natural-language endpoints: SQL generation on its own, and the full ask
chain (generate, execute, shape).
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from datasculpt import dialects
from datasculpt.models.api import AskRequest, GenerateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_kind(database_type: str) -> str:
    try:
        return dialects.get_dialect(database_type).kind
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/generate-sql", response_model=None)
async def generate_sql(payload: GenerateRequest) -> dict[str, Any]:
    """
    Generate SQL for a question.

    Never fails because of the model: unusable model output is replaced by a
    deterministic fallback query.
    """
    from datasculpt.api.main import get_pipeline

    kind = _resolve_kind(payload.database_type)
    try:
        query = await get_pipeline().generator.generate(payload.query, kind)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return query.model_dump(by_alias=True)


@router.post("/ask", response_model=None)
async def ask(payload: AskRequest) -> dict[str, Any]:
    """
    Answer a question with data and a chart series.

    Safety rejections and execution failures are rendered by the
    application's exception handlers.
    """
    from datasculpt.api.main import get_pipeline

    kind = _resolve_kind(payload.database_type)
    config = None
    try:
        if payload.connection_config is not None:
            config = payload.connection_config.to_config(kind)
        result = await get_pipeline().ask(payload.query, kind, config=config)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return result.model_dump(by_alias=True)
