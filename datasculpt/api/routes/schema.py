"""Schema descriptor route."""

from fastapi import APIRouter, HTTPException, status

from datasculpt.schema import SchemaDescriptor

router = APIRouter()


@router.get("/schema", response_model=SchemaDescriptor)
async def get_schema() -> SchemaDescriptor:
    """The schema descriptor embedded in generation prompts."""
    from datasculpt.api.main import app_state

    descriptor = app_state.get("schema")
    if descriptor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Schema not loaded"
        )
    return descriptor
