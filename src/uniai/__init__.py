"""Provider-agnostic chat completions.

This package provides a vendor-neutral interface over OpenAI, Azure OpenAI,
Anthropic and Bedrock, with tool-calling emulation for models that do not
return structured tool calls.
"""

from .adapters import from_openai_params
from .client import LLMClient, chat, get_client
from .emulation import EMULATION_WARNING, emulate
from .errors import (
    AuthenticationError,
    ContentFilterError,
    DecisionParseError,
    EmulationConfigError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    PolicyViolationError,
    ProviderError,
    RateLimitError,
    TimeoutError,
    ToolEmulationError,
    UnknownToolError,
)
from .models import (
    AnthropicOptions,
    ChatMessage,
    ChatOptions,
    ChatRequest,
    ChatResult,
    OpenAIOptions,
    Tool,
    ToolCall,
    ToolCallFunction,
    ToolChoice,
    ToolFunction,
    Usage,
)

__all__ = [
    "LLMClient",
    "chat",
    "get_client",
    "emulate",
    "EMULATION_WARNING",
    "from_openai_params",
    "ChatRequest",
    "ChatResult",
    "ChatMessage",
    "ChatOptions",
    "OpenAIOptions",
    "AnthropicOptions",
    "Tool",
    "ToolFunction",
    "ToolChoice",
    "ToolCall",
    "ToolCallFunction",
    "Usage",
    "LLMError",
    "AuthenticationError",
    "RateLimitError",
    "TimeoutError",
    "InvalidRequestError",
    "ContentFilterError",
    "ProviderError",
    "ModelNotFoundError",
    "ToolEmulationError",
    "EmulationConfigError",
    "DecisionParseError",
    "PolicyViolationError",
    "UnknownToolError",
]
