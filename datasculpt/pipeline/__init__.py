"""Ask pipeline: generate -> execute -> shape."""

from datasculpt.pipeline.orchestrator import (
    AnalyticsPipeline,
    build_pipeline,
    create_provider,
    create_registry,
    environment_defaults,
)

__all__ = [
    "AnalyticsPipeline",
    "build_pipeline",
    "create_provider",
    "create_registry",
    "environment_defaults",
]
