"""LLM error hierarchy.

Custom exceptions for chat operations with provider context.
Used for retry logic and for surfacing tool-emulation failures.
"""


class LLMError(Exception):
    """Base exception for LLM operations."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        request_id: str | None = None,
        correlation_id: str | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.request_id = request_id
        self.correlation_id = correlation_id

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        return " ".join(parts)


class AuthenticationError(LLMError):
    """401/403 - Invalid or missing API key.

    Non-retryable. Check API key configuration.
    """

    pass


class RateLimitError(LLMError):
    """429 - Rate limit exceeded.

    Retryable with exponential backoff. Respect retry_after if provided.
    """

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        provider: str | None = None,
        request_id: str | None = None,
        correlation_id: str | None = None,
    ):
        super().__init__(message, provider, request_id, correlation_id)
        self.retry_after = retry_after


class TimeoutError(LLMError):
    """Request exceeded timeout threshold.

    Retryable once with potentially increased timeout.
    """

    pass


class InvalidRequestError(LLMError):
    """400 - Malformed request.

    Non-retryable. Fix the request parameters.
    Examples: bad schema, too many tokens, missing model.
    """

    pass


class ContentFilterError(LLMError):
    """Response blocked by safety filters.

    Non-retryable. Content was flagged by provider's safety system.
    """

    pass


class ProviderError(LLMError):
    """500/502/503 - Provider-side failure.

    Retryable. May be transient server issues.
    """

    pass


class ModelNotFoundError(LLMError):
    """Model identifier not recognized.

    Non-retryable. Check model name.
    """

    pass


class ToolEmulationError(LLMError):
    """Tool-calling emulation could not determine the model's intent.

    Non-retryable. Emulation fails loudly instead of guessing.
    """

    pass


class EmulationConfigError(ToolEmulationError):
    """The request has no function tools to build a decision prompt from."""

    pass


class DecisionParseError(ToolEmulationError):
    """The decision response did not contain a usable decision object."""

    def __init__(self, message: str, raw_text: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_text = raw_text


class PolicyViolationError(ToolEmulationError):
    """The decision conflicts with the request's tool_choice."""

    def __init__(self, message: str, mode: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.mode = mode


class UnknownToolError(ToolEmulationError):
    """The decided tool is not among the request's function tools."""

    def __init__(self, message: str, tool_name: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


# Error classification for retry logic
RETRYABLE_ERRORS = (RateLimitError, TimeoutError, ProviderError)
NON_RETRYABLE_ERRORS = (
    AuthenticationError,
    InvalidRequestError,
    ContentFilterError,
    ModelNotFoundError,
    ToolEmulationError,
)
