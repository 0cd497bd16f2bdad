"""Chat data models.

Vendor-neutral request and response models for chat completions.
These models abstract away provider-specific details.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DebugFn = Callable[[str, str], None]


class ToolCallFunction(BaseModel):
    """Function invocation carried by a tool call."""

    name: str
    arguments: str = "{}"  # raw JSON-encoded string


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str
    type: str = "function"
    function: ToolCallFunction


class ChatMessage(BaseModel):
    """A single message in the conversation."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[dict[str, Any]] = ""  # text or content parts (multimodal)
    name: str | None = None
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] | None = None

    @model_validator(mode="after")
    def _check_tool_call_id(self) -> ChatMessage:
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("tool_call_id is required for tool messages")
        return self


class ToolFunction(BaseModel):
    """Function definition exposed to the model."""

    name: str
    description: str = ""
    parameters: dict[str, Any] | None = None  # JSON schema
    strict: bool | None = None


class Tool(BaseModel):
    """A tool the model may call. Only "function" tools are used."""

    type: str = "function"
    function: ToolFunction

    @classmethod
    def from_function(
        cls,
        name: str,
        description: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> Tool:
        return cls(
            function=ToolFunction(name=name, description=description, parameters=parameters)
        )


class ToolChoice(BaseModel):
    """Caller constraint on whether/which tool must be invoked."""

    mode: Literal["auto", "none", "required", "function"] = "auto"
    function_name: str | None = None

    @model_validator(mode="after")
    def _check_function_name(self) -> ToolChoice:
        if self.mode == "function" and not (self.function_name or "").strip():
            raise ValueError("tool_choice mode 'function' requires a function_name")
        return self

    @classmethod
    def auto(cls) -> ToolChoice:
        return cls(mode="auto")

    @classmethod
    def none(cls) -> ToolChoice:
        return cls(mode="none")

    @classmethod
    def required(cls) -> ToolChoice:
        return cls(mode="required")

    @classmethod
    def function(cls, name: str) -> ToolChoice:
        return cls(mode="function", function_name=name)


class OpenAIOptions(BaseModel):
    """OpenAI-specific parameter overlay (also used for Azure).

    Only the keys below are recognised; anything else is dropped.
    """

    model_config = ConfigDict(extra="ignore")

    n: int | None = None
    seed: int | None = None
    logprobs: bool | None = None
    top_logprobs: int | None = None
    parallel_tool_calls: bool | None = None
    store: bool | None = None
    prompt_cache_key: str | None = None
    safety_identifier: str | None = None
    reasoning_effort: str | None = None
    verbosity: str | None = None
    service_tier: str | None = None
    modalities: list[str] | None = None
    logit_bias: dict[str, int] | None = None
    metadata: dict[str, str] | None = None
    response_format: dict[str, Any] | None = None


class AnthropicOptions(BaseModel):
    """Anthropic-specific parameter overlay (also used for Bedrock)."""

    model_config = ConfigDict(extra="ignore")

    top_k: int | None = None
    metadata: dict[str, Any] | None = None
    thinking: dict[str, Any] | None = None
    service_tier: str | None = None


class ChatOptions(BaseModel):
    """Shared generation knobs plus per-vendor overlays."""

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = None
    max_tokens: int | None = None
    stop: list[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    user: str | None = None
    tools_emulation: bool = False
    debug_fn: DebugFn | None = Field(default=None, exclude=True)

    openai: OpenAIOptions | None = None
    azure: OpenAIOptions | None = None
    anthropic: AnthropicOptions | None = None
    bedrock: AnthropicOptions | None = None

    def clone(self) -> ChatOptions:
        """Copy with fresh collections; debug_fn is shared, not copied."""
        return self.model_copy(
            update={
                "stop": list(self.stop) if self.stop is not None else None,
                "openai": self.openai.model_copy(deep=True) if self.openai else None,
                "azure": self.azure.model_copy(deep=True) if self.azure else None,
                "anthropic": self.anthropic.model_copy(deep=True) if self.anthropic else None,
                "bedrock": self.bedrock.model_copy(deep=True) if self.bedrock else None,
            }
        )


class ChatRequest(BaseModel):
    """Vendor-neutral chat request."""

    messages: list[ChatMessage]
    model: str = ""  # empty means provider default
    tools: list[Tool] = Field(default_factory=list)
    tool_choice: ToolChoice | None = None
    options: ChatOptions = Field(default_factory=ChatOptions)

    def clone(self) -> ChatRequest:
        """Return a copy whose mutable collections are independent of this one."""
        return self.model_copy(
            update={
                "messages": [m.model_copy(deep=True) for m in self.messages],
                "tools": [t.model_copy(deep=True) for t in self.tools],
                "tool_choice": self.tool_choice.model_copy() if self.tool_choice else None,
                "options": self.options.clone(),
            }
        )


class Usage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResult(BaseModel):
    """Vendor-neutral chat result."""

    text: str = ""
    model: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    messages: list[ChatMessage] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)
    warnings: list[str] = Field(default_factory=list)
    raw: Any = None  # vendor payload, for diagnostics only
    provider: str | None = None
    finish_reason: str | None = None
    latency_ms: int | None = None
    request_id: str | None = None
