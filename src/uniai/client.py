"""High-level chat client with retry and tool-calling emulation.

Provides a single entry point over all configured vendors. Each provider
call is retried with exponential backoff; requests that enable
``options.tools_emulation`` go through the emulation layer.
"""

import asyncio
import logging
import os
import random
import uuid

from dotenv import load_dotenv

from .emulation import emulate
from .errors import (
    LLMError,
    RateLimitError,
    RETRYABLE_ERRORS,
)
from .models import ChatRequest, ChatResult
from .providers.anthropic import AnthropicProvider
from .providers.azure import AzureOpenAIProvider
from .providers.base import LLMProvider
from .providers.bedrock import BedrockProvider
from .providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class LLMClient:
    """High-level chat client with retry and tool emulation.

    Features:
    - Automatic retry with exponential backoff + jitter
    - Tool-calling emulation on request
    - Correlation ID tracking across attempts
    - Configurable via environment variables

    Configuration (env vars):
    - LLM_DEFAULT_PROVIDER: Default provider (default: "openai")
    - LLM_TIMEOUT_SECONDS: Request timeout (default: 60)
    - LLM_MAX_RETRIES: Max retries per provider call (default: 2)
    - LLM_DEBUG: Log request/response payloads (default: off)
    """

    # Default configuration
    DEFAULT_PROVIDER = "openai"
    DEFAULT_TIMEOUT = 60.0
    DEFAULT_MAX_RETRIES = 2
    DEFAULT_BASE_DELAY = 1.0  # Base delay for exponential backoff
    DEFAULT_MAX_DELAY = 30.0  # Maximum delay between retries

    def __init__(
        self,
        default_provider: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        debug: bool | None = None,
        openai_api_key: str | None = None,
        anthropic_api_key: str | None = None,
        azure_api_key: str | None = None,
        azure_endpoint: str | None = None,
        azure_deployment: str | None = None,
        aws_region: str | None = None,
    ):
        """Initialize chat client.

        Args:
            default_provider: Provider used when none is given. Defaults to LLM_DEFAULT_PROVIDER env var.
            timeout: Request timeout in seconds. Defaults to LLM_TIMEOUT_SECONDS env var.
            max_retries: Max retries per provider call. Defaults to LLM_MAX_RETRIES env var.
            debug: Log request/response payloads. Defaults to LLM_DEBUG env var.
            openai_api_key: OpenAI API key. Defaults to OPENAI_API_KEY env var.
            anthropic_api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            azure_api_key: Azure OpenAI key. Defaults to AZURE_OPENAI_API_KEY env var.
            azure_endpoint: Azure OpenAI endpoint. Defaults to AZURE_OPENAI_ENDPOINT env var.
            azure_deployment: Azure OpenAI deployment. Defaults to AZURE_OPENAI_DEPLOYMENT env var.
            aws_region: Bedrock region. Defaults to AWS_REGION env var.
        """
        # Load configuration from environment or use provided values
        self._default_provider = (
            default_provider
            or os.environ.get("LLM_DEFAULT_PROVIDER", self.DEFAULT_PROVIDER)
        )
        self._timeout = (
            timeout
            if timeout is not None
            else float(os.environ.get("LLM_TIMEOUT_SECONDS", self.DEFAULT_TIMEOUT))
        )
        self._max_retries = (
            max_retries
            if max_retries is not None
            else int(os.environ.get("LLM_MAX_RETRIES", self.DEFAULT_MAX_RETRIES))
        )
        self._debug = (
            debug
            if debug is not None
            else os.environ.get("LLM_DEBUG", "").strip().lower() in _TRUTHY
        )

        # Initialize providers
        self._providers: dict[str, LLMProvider] = {
            "openai": OpenAIProvider(
                api_key=openai_api_key, timeout=self._timeout, debug=self._debug
            ),
            "azure": AzureOpenAIProvider(
                api_key=azure_api_key,
                endpoint=azure_endpoint,
                deployment=azure_deployment,
                timeout=self._timeout,
                debug=self._debug,
            ),
            "anthropic": AnthropicProvider(
                api_key=anthropic_api_key, timeout=self._timeout, debug=self._debug
            ),
            "bedrock": BedrockProvider(
                aws_region=aws_region, timeout=self._timeout, debug=self._debug
            ),
        }

    def get_provider(self, name: str) -> LLMProvider:
        """Get a specific provider by name.

        Args:
            name: Provider name ("openai", "azure", "anthropic" or "bedrock").

        Returns:
            LLMProvider instance.

        Raises:
            ValueError: If provider name is not recognized.
        """
        if name not in self._providers:
            raise ValueError(f"Unknown provider: {name}. Available: {list(self._providers.keys())}")
        return self._providers[name]

    def get_default_provider(self) -> LLMProvider:
        """Get the default provider."""
        return self.get_provider(self._default_provider)

    def is_provider_available(self, name: str) -> bool:
        """Check if a provider is configured and available.

        Args:
            name: Provider name.

        Returns:
            True if the provider has valid configuration.
        """
        if name not in self._providers:
            return False

        # Check if credentials are configured
        if name == "openai":
            return bool(os.environ.get("OPENAI_API_KEY"))
        if name == "anthropic":
            return bool(os.environ.get("ANTHROPIC_API_KEY"))
        if name == "azure":
            return all(
                os.environ.get(key)
                for key in ("AZURE_OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_DEPLOYMENT")
            )
        if name == "bedrock":
            return bool(os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION"))

        return False

    async def chat(
        self,
        request: ChatRequest,
        provider: str | None = None,
        correlation_id: str | None = None,
    ) -> ChatResult:
        """Run a chat request against one provider.

        Args:
            request: Chat request to send.
            provider: Provider name. Defaults to the default provider.
            correlation_id: Optional ID for tracking across retry attempts.

        Returns:
            Chat result. Emulated tool calls carry the "tool calls emulated" warning.

        Raises:
            LLMError: If the provider fails after retries, or emulation fails.
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        provider_name = provider or self._default_provider
        self.get_provider(provider_name)

        async def provider_call(req: ChatRequest) -> ChatResult:
            return await self._generate_with_retry(
                request=req,
                provider_name=provider_name,
                correlation_id=correlation_id,
            )

        if request.options.tools_emulation:
            logger.debug(
                "Tool emulation enabled",
                extra={"correlation_id": correlation_id, "provider": provider_name},
            )
            return await emulate(provider_call, request)

        return await provider_call(request)

    async def _generate_with_retry(
        self,
        request: ChatRequest,
        provider_name: str,
        correlation_id: str,
    ) -> ChatResult:
        """Generate with retry logic for a single provider.

        Args:
            request: Chat request to send.
            provider_name: Provider to use.
            correlation_id: Tracking ID.

        Returns:
            Chat result.

        Raises:
            LLMError: After all retries exhausted.
        """
        provider = self.get_provider(provider_name)
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                logger.debug(
                    "Attempting request to %s (attempt %d/%d)",
                    provider_name,
                    attempt + 1,
                    self._max_retries + 1,
                    extra={
                        "correlation_id": correlation_id,
                        "provider": provider_name,
                        "attempt": attempt + 1,
                    },
                )

                response = await provider.generate(request)

                # Log successful request
                logger.info(
                    "Chat request succeeded",
                    extra={
                        "correlation_id": correlation_id,
                        "provider": response.provider,
                        "model": response.model,
                        "latency_ms": response.latency_ms,
                        "prompt_tokens": response.usage.prompt_tokens,
                        "completion_tokens": response.usage.completion_tokens,
                        "finish_reason": response.finish_reason,
                    },
                )

                return response

            except RETRYABLE_ERRORS as e:
                last_error = e
                e.correlation_id = correlation_id

                # Log retry attempt
                logger.warning(
                    "Retryable error on attempt %d/%d: %s",
                    attempt + 1,
                    self._max_retries + 1,
                    str(e),
                    extra={
                        "correlation_id": correlation_id,
                        "provider": provider_name,
                        "attempt": attempt + 1,
                        "error_type": type(e).__name__,
                    },
                )

                # If more retries left, wait with exponential backoff
                if attempt < self._max_retries:
                    delay = self._calculate_backoff(attempt, e)
                    logger.debug(
                        "Waiting %.2f seconds before retry",
                        delay,
                        extra={"correlation_id": correlation_id},
                    )
                    await asyncio.sleep(delay)

            except LLMError as e:
                # Non-retryable errors pass through immediately
                e.correlation_id = correlation_id
                logger.error(
                    "Provider %s failed with non-retryable error: %s",
                    provider_name,
                    str(e),
                    extra={
                        "correlation_id": correlation_id,
                        "provider": provider_name,
                        "error_type": type(e).__name__,
                    },
                )
                raise

        # All retries exhausted
        if last_error:
            raise last_error

        raise LLMError(
            f"Provider {provider_name} failed after {self._max_retries + 1} attempts",
            provider=provider_name,
            correlation_id=correlation_id,
        )

    def _calculate_backoff(self, attempt: int, error: Exception) -> float:
        """Calculate backoff delay with exponential growth and jitter.

        Args:
            attempt: Current attempt number (0-indexed).
            error: The error that triggered the retry.

        Returns:
            Delay in seconds.
        """
        # Check for retry-after header
        if isinstance(error, RateLimitError) and error.retry_after:
            return min(error.retry_after, self.DEFAULT_MAX_DELAY)

        # Exponential backoff: base * 2^attempt
        base_delay = self.DEFAULT_BASE_DELAY * (2 ** attempt)

        # Add jitter (±25%)
        jitter = base_delay * 0.25 * (2 * random.random() - 1)

        # Cap at max delay
        delay = min(base_delay + jitter, self.DEFAULT_MAX_DELAY)

        return delay


# Convenience functions for module-level access
_default_client: LLMClient | None = None


def get_client() -> LLMClient:
    """Get the default chat client singleton, loading .env on first use."""
    global _default_client
    if _default_client is None:
        load_dotenv()
        _default_client = LLMClient()
    return _default_client


def get_provider(name: str) -> LLMProvider:
    """Get a specific provider by name."""
    return get_client().get_provider(name)


def is_provider_available(name: str) -> bool:
    """Check if a provider is available."""
    return get_client().is_provider_available(name)


async def chat(
    request: ChatRequest,
    provider: str | None = None,
    correlation_id: str | None = None,
) -> ChatResult:
    """Run a chat request using the default client."""
    return await get_client().chat(
        request=request,
        provider=provider,
        correlation_id=correlation_id,
    )
