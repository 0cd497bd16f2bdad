"""Converters from vendor wire formats into ChatRequest."""

from .openai import from_openai_params

__all__ = ["from_openai_params"]
