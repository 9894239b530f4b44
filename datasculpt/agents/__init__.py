"""
Agents Module

The three stages of an ask:
    - QueryGenerator: natural language -> GeneratedQuery (with fallback)
    - SafetyGate: classify and execute read-only SQL
    - shaper: rows -> chart series and summary
"""

from datasculpt.agents.gate import SafetyGate, check, classify
from datasculpt.agents.generator import (
    GenerationModelError,
    GenerationOk,
    GenerationParseError,
    GenerationResult,
    QueryGenerator,
    fallback_query,
    parse_response,
)
from datasculpt.agents.shaper import fallback_series, infer_visualization, shape, summarize

__all__ = [
    "GenerationModelError",
    "GenerationOk",
    "GenerationParseError",
    "GenerationResult",
    "QueryGenerator",
    "SafetyGate",
    "check",
    "classify",
    "fallback_query",
    "fallback_series",
    "infer_visualization",
    "parse_response",
    "shape",
    "summarize",
]
