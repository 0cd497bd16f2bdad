"""OpenAI provider implementation.

Implements the LLMProvider interface for OpenAI's Chat Completions API.
"""

import os
import time
from typing import Any

from openai import AsyncOpenAI, APIConnectionError, APIStatusError, APITimeoutError

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
    ChatMessage,
    ChatOptions,
    ChatRequest,
    ChatResult,
    OpenAIOptions,
    Tool,
    ToolCall,
    ToolCallFunction,
    ToolChoice,
    Usage,
)
from .base import LLMProvider

# Model families that reject max_tokens in favour of max_completion_tokens
MAX_COMPLETION_TOKENS_PREFIXES = ("gpt", "o1", "o3", "o4")


def use_max_completion_tokens(model: str) -> bool:
    return model.lower().startswith(MAX_COMPLETION_TOKENS_PREFIXES)


def to_openai_messages(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Convert chat messages to Chat Completions message dicts."""
    out = []
    for msg in messages:
        if msg.role == "tool":
            out.append({
                "role": "tool",
                "content": msg.content,
                "tool_call_id": msg.tool_call_id,
            })
            continue

        openai_msg: dict[str, Any] = {"role": msg.role}
        if msg.role == "assistant":
            tool_calls = to_openai_tool_calls(msg.tool_calls or [])
            if tool_calls:
                openai_msg["tool_calls"] = tool_calls
            if msg.content or not tool_calls:
                openai_msg["content"] = msg.content
        else:
            openai_msg["content"] = msg.content
        if msg.name:
            openai_msg["name"] = msg.name
        out.append(openai_msg)
    return out


def to_openai_tool_calls(calls: list[ToolCall]) -> list[dict[str, Any]]:
    return [
        {
            "id": call.id,
            "type": "function",
            "function": {
                "name": call.function.name,
                "arguments": call.function.arguments,
            },
        }
        for call in calls
        if call.type in ("", "function") and call.id and call.function.name
    ]


def to_openai_tools(tools: list[Tool]) -> list[dict[str, Any]]:
    out = []
    for tool in tools:
        if tool.type != "function":
            continue
        fn: dict[str, Any] = {"name": tool.function.name}
        if tool.function.description:
            fn["description"] = tool.function.description
        if tool.function.parameters:
            fn["parameters"] = tool.function.parameters
        if tool.function.strict is not None:
            fn["strict"] = tool.function.strict
        out.append({"type": "function", "function": fn})
    return out


def to_openai_tool_choice(choice: ToolChoice) -> str | dict[str, Any]:
    if choice.mode == "function":
        return {"type": "function", "function": {"name": choice.function_name}}
    return choice.mode


def apply_openai_options(params: dict[str, Any], opts: OpenAIOptions | None) -> None:
    """Copy recognised overlay keys into the request params."""
    if opts is None:
        return
    if opts.n is not None and opts.n > 0:
        params["n"] = opts.n
    if opts.seed is not None:
        params["seed"] = opts.seed
    if opts.logprobs is not None:
        params["logprobs"] = opts.logprobs
    if opts.top_logprobs is not None and opts.top_logprobs > 0:
        params["top_logprobs"] = opts.top_logprobs
    if opts.parallel_tool_calls is not None:
        params["parallel_tool_calls"] = opts.parallel_tool_calls
    if opts.store is not None:
        params["store"] = opts.store
    for key in (
        "prompt_cache_key",
        "safety_identifier",
        "reasoning_effort",
        "verbosity",
        "service_tier",
    ):
        value = getattr(opts, key)
        if value and value.strip():
            params[key] = value.strip()
    if opts.modalities:
        params["modalities"] = list(opts.modalities)
    if opts.logit_bias:
        params["logit_bias"] = dict(opts.logit_bias)
    if opts.metadata:
        params["metadata"] = dict(opts.metadata)
    if opts.response_format:
        params["response_format"] = opts.response_format


class OpenAIProvider(LLMProvider):
    """OpenAI Chat Completions API provider.

    Supports:
    - Function/tool calling
    - Vision (image inputs)
    - JSON mode via the ``response_format`` overlay key
    """

    # Supported capabilities
    SUPPORTED_FEATURES = {
        "json_object",
        "tools",
        "vision",
        "system_message",
    }

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 60.0,
        default_model: str = "gpt-4o",
        base_url: str | None = None,
        debug: bool = False,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. Defaults to OPENAI_API_KEY env var.
            timeout: Request timeout in seconds.
            default_model: Default model to use if not specified in request.
            base_url: Alternative API base URL. Defaults to OPENAI_BASE_URL env var.
            debug: Log request/response payloads.
        """
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self._base_url = base_url or os.environ.get("OPENAI_BASE_URL")
        self._timeout = timeout
        self._default_model = default_model
        self.debug = debug
        self._client: AsyncOpenAI | None = None

    @property
    def name(self) -> str:
        """Provider identifier."""
        return "openai"

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-initialized OpenAI client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "OpenAI API key not configured. Set OPENAI_API_KEY environment variable.",
                    provider=self.name,
                )
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
            )
        return self._client

    def supports(self, feature: str) -> bool:
        """Check if feature is supported."""
        return feature in self.SUPPORTED_FEATURES

    async def generate(self, request: ChatRequest) -> ChatResult:
        """Send a chat request to OpenAI.

        Args:
            request: Vendor-neutral chat request.

        Returns:
            Vendor-neutral chat result.

        Raises:
            Various LLMError subclasses based on the error type.
        """
        start_time = time.perf_counter()

        # Build OpenAI-specific request
        openai_request = self._build_request(request)
        self._log_payload(request, "request", openai_request)

        try:
            response = await self.client.chat.completions.create(**openai_request)
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

    @property
    def display_name(self) -> str:
        return "OpenAI"

    def _model_for(self, request: ChatRequest) -> str:
        return self._resolve_model(request, self._default_model)

    def _overlay(self, options: ChatOptions) -> OpenAIOptions | None:
        return options.openai

    def _max_tokens_key(self, model: str) -> str:
        return "max_completion_tokens" if use_max_completion_tokens(model) else "max_tokens"

    def _build_request(self, request: ChatRequest) -> dict[str, Any]:
        """Convert ChatRequest to OpenAI API format."""
        model = self._model_for(request)
        opts = request.options

        openai_request: dict[str, Any] = {
            "model": model,
            "messages": to_openai_messages(request.messages),
        }

        # Optional parameters
        if opts.temperature is not None:
            openai_request["temperature"] = opts.temperature
        if opts.top_p is not None:
            openai_request["top_p"] = opts.top_p
        if opts.max_tokens is not None:
            openai_request[self._max_tokens_key(model)] = opts.max_tokens
        if opts.stop:
            openai_request["stop"] = list(opts.stop)
        if opts.presence_penalty is not None:
            openai_request["presence_penalty"] = opts.presence_penalty
        if opts.frequency_penalty is not None:
            openai_request["frequency_penalty"] = opts.frequency_penalty
        if opts.user is not None:
            openai_request["user"] = opts.user

        tools = to_openai_tools(request.tools)
        if tools:
            openai_request["tools"] = tools

        if request.tool_choice:
            openai_request["tool_choice"] = to_openai_tool_choice(request.tool_choice)

        apply_openai_options(openai_request, self._overlay(opts))
        return openai_request

    def _parse_response(self, response: Any, latency_ms: int) -> ChatResult:
        """Convert OpenAI response to ChatResult."""
        text = ""
        tool_calls: list[ToolCall] = []
        for choice in response.choices:
            message = choice.message
            text += message.content or ""
            # Tool calls come from the first choice that has any
            if message.tool_calls and not tool_calls:
                tool_calls = [
                    ToolCall(
                        id=tc.id,
                        type=tc.type,
                        function=ToolCallFunction(
                            name=tc.function.name,
                            arguments=tc.function.arguments,
                        ),
                    )
                    for tc in message.tool_calls
                    if tc.type == "function" and tc.function.name
                ]

        finish_reason = None
        if response.choices:
            finish_reason = response.choices[0].finish_reason

        usage = Usage()
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return ChatResult(
            text=text,
            tool_calls=tool_calls,
            messages=[ChatMessage(role="assistant", content=text, tool_calls=tool_calls or None)],
            finish_reason=finish_reason or "stop",
            usage=usage,
            model=response.model,
            provider=self.name,
            latency_ms=latency_ms,
            request_id=response.id,
            raw=response.model_dump() if hasattr(response, "model_dump") else None,
        )

    def _handle_api_error(self, error: APIStatusError) -> None:
        """Convert OpenAI API errors to LLMError types."""
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
            if "content_filter" in message.lower() or "safety" in message.lower():
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
