"""Prompt templates and loader."""

from datasculpt.prompts.loader import PromptLoader

__all__ = ["PromptLoader"]
