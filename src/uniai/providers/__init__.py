"""Chat provider implementations.

This package contains vendor-specific implementations of the LLMProvider interface.
"""

from .anthropic import AnthropicProvider
from .azure import AzureOpenAIProvider
from .base import LLMProvider
from .bedrock import BedrockProvider
from .openai import OpenAIProvider

__all__ = [
    "LLMProvider",
    "OpenAIProvider",
    "AzureOpenAIProvider",
    "AnthropicProvider",
    "BedrockProvider",
]
