"""
Query pipeline models.

Types flowing through generate -> execute -> shape:
GeneratedQuery (generator output), QueryClassification (gate tag) and
AskResult (one end-to-end answer).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Visualization = Literal["bar", "line", "pie", "area"]
VISUALIZATIONS: tuple[str, ...] = ("bar", "line", "pie", "area")


class QueryClassification(str, Enum):
    """Intent of a SQL statement as seen by the safety gate."""

    READ = "read"
    WRITE = "write"
    DESTRUCTIVE = "destructive"
    UNRECOGNIZED = "unrecognized"


class GeneratedQuery(BaseModel):
    """SQL produced for one natural-language request."""

    sql: str = Field(..., min_length=1, description="SQL statement")
    explanation: str = Field(default="", description="What the query shows")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Self-reported confidence")
    suggested_visualization: Visualization = Field(
        default="bar",
        alias="suggestedVisualization",
        description="Chart type hint",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class AskResult(BaseModel):
    """Result of one ask: generated query, raw rows and chart series."""

    query: GeneratedQuery
    classification: QueryClassification
    data: list[dict[str, Any]] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    series: list[dict[str, Any]] = Field(default_factory=list)
    chart_type: Visualization = Field(default="bar", serialization_alias="chartType")
    summary: str = Field(default="")
    used_fallback_series: bool = Field(default=False, serialization_alias="usedFallbackSeries")
    used_fallback_query: bool = Field(default=False, serialization_alias="usedFallbackQuery")
    warnings: list[str] = Field(default_factory=list)
