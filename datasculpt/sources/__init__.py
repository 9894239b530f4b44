"""Data source registry."""

from datasculpt.sources.registry import DataSourceRegistry

__all__ = ["DataSourceRegistry"]
