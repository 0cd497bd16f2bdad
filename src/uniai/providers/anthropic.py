"""Anthropic provider implementation.

Implements the LLMProvider interface for Anthropic's Messages API.
"""

import json
import os
import re
import time
from typing import Any

from anthropic import (
    AsyncAnthropic,
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
)

from ..errors import (
    AuthenticationError,
    ContentFilterError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    ProviderError,
    RateLimitError,
    TimeoutError,
)
from ..models import (
    AnthropicOptions,
    ChatMessage,
    ChatOptions,
    ChatRequest,
    ChatResult,
    ToolCall,
    ToolCallFunction,
    Usage,
)
from .base import LLMProvider

DEFAULT_MAX_TOKENS = 4096

# Map Anthropic stop reasons to our format
FINISH_REASON_MAP = {
    "end_turn": "stop",
    "max_tokens": "length",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
}

EMPTY_INPUT_SCHEMA = {"type": "object", "properties": {}}

_DATA_URL_RE = re.compile(r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


def text_of(content: str | list[dict[str, Any]]) -> str:
    """Plain text of a message; content parts contribute their text only."""
    if isinstance(content, str):
        return content
    return "\n".join(part.get("text", "") for part in content if part.get("type") == "text")


def to_anthropic_image(part: dict[str, Any]) -> dict[str, Any]:
    """Convert an OpenAI-style ``image_url`` part to an Anthropic image block."""
    image_url = part.get("image_url") or {}
    url = image_url if isinstance(image_url, str) else image_url.get("url", "")
    match = _DATA_URL_RE.match(url)
    if match:
        source = {
            "type": "base64",
            "media_type": match.group("media_type"),
            "data": match.group("data"),
        }
    else:
        source = {"type": "url", "url": url}
    return {"type": "image", "source": source}


def to_anthropic_content(content: str | list[dict[str, Any]]) -> str | list[dict[str, Any]]:
    """Convert message content; native Anthropic blocks pass through unchanged."""
    if isinstance(content, str):
        return content
    blocks = []
    for part in content:
        if part.get("type") == "image_url":
            blocks.append(to_anthropic_image(part))
        else:
            blocks.append(part)
    return blocks


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider.

    Supports:
    - Function/tool calling (tool_use / tool_result blocks)
    - Vision (image inputs)
    - Dedicated system prompt
    """

    # Supported capabilities
    SUPPORTED_FEATURES = {
        "tools",
        "vision",
        "system_message",
    }

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 60.0,
        default_model: str = "claude-sonnet-4-5-20250929",
        debug: bool = False,
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            timeout: Request timeout in seconds.
            default_model: Default model to use if not specified in request.
            debug: Log request/response payloads.
        """
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._timeout = timeout
        self._default_model = default_model
        self.debug = debug
        self._client: Any = None

    @property
    def name(self) -> str:
        """Provider identifier."""
        return "anthropic"

    @property
    def display_name(self) -> str:
        return "Anthropic"

    @property
    def client(self) -> AsyncAnthropic:
        """Lazy-initialized Anthropic client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable.",
                    provider=self.name,
                )
            self._client = AsyncAnthropic(api_key=self._api_key, timeout=self._timeout)
        return self._client

    def supports(self, feature: str) -> bool:
        """Check if feature is supported."""
        return feature in self.SUPPORTED_FEATURES

    async def generate(self, request: ChatRequest) -> ChatResult:
        """Send a chat request to Anthropic.

        Args:
            request: Vendor-neutral chat request.

        Returns:
            Vendor-neutral chat result.

        Raises:
            Various LLMError subclasses based on the error type.
        """
        start_time = time.perf_counter()

        # Build Anthropic-specific request
        anthropic_request = self._build_request(request)
        self._log_payload(request, "request", anthropic_request)

        try:
            response = await self.client.messages.create(**anthropic_request)
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            self._log_payload(request, "response", response)
            return self._parse_response(response, latency_ms)

        except APITimeoutError as e:
            raise TimeoutError(
                f"{self.display_name} request timed out after {self._timeout}s",
                provider=self.name,
            ) from e

        except APIConnectionError as e:
            raise ProviderError(
                f"Failed to connect to {self.display_name}: {e}",
                provider=self.name,
            ) from e

        except APIStatusError as e:
            self._handle_api_error(e)

    def _overlay(self, options: ChatOptions) -> AnthropicOptions | None:
        return options.anthropic

    def _convert_messages(self, messages: list[ChatMessage]) -> tuple[str | None, list[dict[str, Any]]]:
        """Split out system prompt and convert the conversation."""
        system_parts = []
        converted: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == "system":
                # Anthropic takes system as a top-level parameter
                system_parts.append(text_of(msg.content))
            elif msg.role == "tool":
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": to_anthropic_content(msg.content),
                }
                # Consecutive tool results share one user turn
                last = converted[-1] if converted else None
                if (
                    last is not None
                    and last["role"] == "user"
                    and isinstance(last["content"], list)
                    and all(b.get("type") == "tool_result" for b in last["content"])
                ):
                    last["content"].append(block)
                else:
                    converted.append({"role": "user", "content": [block]})
            elif msg.role == "assistant" and msg.tool_calls:
                blocks: list[dict[str, Any]] = []
                content = to_anthropic_content(msg.content)
                if isinstance(content, list):
                    blocks.extend(content)
                elif content:
                    blocks.append({"type": "text", "text": content})
                for call in msg.tool_calls:
                    blocks.append({
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.function.name,
                        "input": self._decode_arguments(call),
                    })
                converted.append({"role": "assistant", "content": blocks})
            else:
                converted.append({"role": msg.role, "content": to_anthropic_content(msg.content)})

        system = "\n\n".join(p for p in system_parts if p) or None
        return system, converted

    def _decode_arguments(self, call: ToolCall) -> Any:
        if not call.function.arguments.strip():
            return {}
        try:
            return json.loads(call.function.arguments)
        except json.JSONDecodeError as e:
            raise InvalidRequestError(
                f"tool call {call.id} has invalid JSON arguments",
                provider=self.name,
            ) from e

    def _build_request(self, request: ChatRequest) -> dict[str, Any]:
        """Convert ChatRequest to Anthropic API format."""
        opts = request.options
        system_content, messages = self._convert_messages(request.messages)

        anthropic_request: dict[str, Any] = {
            "model": self._resolve_model(request, self._default_model),
            "messages": messages,
            "max_tokens": opts.max_tokens or DEFAULT_MAX_TOKENS,
        }

        if system_content:
            anthropic_request["system"] = system_content

        # Anthropic uses 0-1 range, we accept 0-2
        if opts.temperature is not None:
            anthropic_request["temperature"] = min(opts.temperature, 1.0)
        if opts.top_p is not None:
            anthropic_request["top_p"] = opts.top_p
        if opts.stop:
            anthropic_request["stop_sequences"] = list(opts.stop)
        if opts.user:
            anthropic_request["metadata"] = {"user_id": opts.user}

        tools = []
        for tool in request.tools:
            if tool.type != "function":
                continue
            spec: dict[str, Any] = {
                "name": tool.function.name,
                "input_schema": tool.function.parameters or EMPTY_INPUT_SCHEMA,
            }
            if tool.function.description:
                spec["description"] = tool.function.description
            tools.append(spec)
        if tools:
            anthropic_request["tools"] = tools
            choice = request.tool_choice
            if choice is not None:
                if choice.mode == "auto":
                    anthropic_request["tool_choice"] = {"type": "auto"}
                elif choice.mode == "required":
                    anthropic_request["tool_choice"] = {"type": "any"}
                elif choice.mode == "function":
                    anthropic_request["tool_choice"] = {
                        "type": "tool",
                        "name": choice.function_name,
                    }
                else:
                    # none: don't set tool_choice, just don't pass tools
                    del anthropic_request["tools"]

        overlay = self._overlay(opts)
        if overlay is not None:
            if overlay.top_k is not None:
                anthropic_request["top_k"] = overlay.top_k
            if overlay.metadata:
                anthropic_request["metadata"] = {
                    **anthropic_request.get("metadata", {}),
                    **overlay.metadata,
                }
            if overlay.thinking:
                anthropic_request["thinking"] = overlay.thinking
            if overlay.service_tier:
                anthropic_request["service_tier"] = overlay.service_tier

        return anthropic_request

    def _parse_response(self, response: Any, latency_ms: int) -> ChatResult:
        """Convert Anthropic response to ChatResult."""
        # Extract text and tool calls from content blocks
        text_parts = []
        tool_calls = []

        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(
                        id=block.id,
                        type="function",
                        function=ToolCallFunction(
                            name=block.name,
                            arguments=json.dumps(block.input),
                        ),
                    )
                )

        text = "\n".join(text_parts)
        finish_reason = FINISH_REASON_MAP.get(response.stop_reason, response.stop_reason)

        return ChatResult(
            text=text,
            tool_calls=tool_calls,
            messages=[ChatMessage(role="assistant", content=text, tool_calls=tool_calls or None)],
            finish_reason=finish_reason,
            usage=Usage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            model=response.model,
            provider=self.name,
            latency_ms=latency_ms,
            request_id=response.id,
            raw=response.model_dump() if hasattr(response, "model_dump") else None,
        )

    def _handle_api_error(self, error: APIStatusError) -> None:
        """Convert Anthropic API errors to LLMError types."""
        status_code = error.status_code
        message = str(error.message) if hasattr(error, "message") else str(error)
        request_id = getattr(error, "request_id", None)
        vendor = self.display_name

        if status_code == 401:
            raise AuthenticationError(
                f"Invalid {vendor} API key",
                provider=self.name,
                request_id=request_id,
            ) from error

        if status_code == 403:
            raise AuthenticationError(
                f"{vendor} access denied: {message}",
                provider=self.name,
                request_id=request_id,
            ) from error

        if status_code == 404:
            raise ModelNotFoundError(
                f"Model not found: {message}",
                provider=self.name,
                request_id=request_id,
            ) from error

        if status_code == 429:
            # Try to extract retry-after header
            retry_after = None
            if hasattr(error, "response") and error.response:
                retry_after_str = error.response.headers.get("retry-after")
                if retry_after_str:
                    try:
                        retry_after = float(retry_after_str)
                    except ValueError:
                        pass

            raise RateLimitError(
                f"{vendor} rate limit exceeded: {message}",
                retry_after=retry_after,
                provider=self.name,
                request_id=request_id,
            ) from error

        if status_code == 400:
            # Check for content filter in error message
            if "safety" in message.lower() or "harmful" in message.lower():
                raise ContentFilterError(
                    f"Content blocked by {vendor} safety filters: {message}",
                    provider=self.name,
                    request_id=request_id,
                ) from error

            raise InvalidRequestError(
                f"Invalid request to {vendor}: {message}",
                provider=self.name,
                request_id=request_id,
            ) from error

        if status_code >= 500:
            raise ProviderError(
                f"{vendor} server error ({status_code}): {message}",
                provider=self.name,
                request_id=request_id,
            ) from error

        # Unknown error
        raise LLMError(
            f"{vendor} error ({status_code}): {message}",
            provider=self.name,
            request_id=request_id,
        ) from error
