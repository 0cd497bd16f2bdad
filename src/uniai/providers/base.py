"""Abstract base class for chat providers.

Defines the interface that all vendor providers must implement.
"""

from abc import ABC, abstractmethod
from typing import Any

from .. import diag
from ..errors import InvalidRequestError
from ..models import ChatRequest, ChatResult


class LLMProvider(ABC):
    """Base interface for chat providers.

    All providers (OpenAI, Azure, Anthropic, Bedrock) implement this
    interface. The emulation layer only ever sees ``generate``.
    """

    debug: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier: 'openai', 'anthropic', etc."""
        ...

    @abstractmethod
    async def generate(self, request: ChatRequest) -> ChatResult:
        """Send a chat request and return the result.

        Args:
            request: Vendor-neutral chat request.

        Returns:
            Vendor-neutral chat result.

        Raises:
            AuthenticationError: Invalid or missing API key.
            RateLimitError: Rate limit exceeded (retryable).
            TimeoutError: Request timed out (retryable).
            InvalidRequestError: Malformed request (non-retryable).
            ContentFilterError: Response blocked by safety filters.
            ProviderError: Provider-side failure (retryable).
        """
        ...

    @abstractmethod
    def supports(self, feature: str) -> bool:
        """Check if provider supports a capability.

        Args:
            feature: Feature name. Supported values:
                - 'tools': Native function/tool calling
                - 'vision': Image inputs
                - 'system_message': Dedicated system role
                - 'json_object': Basic JSON mode

        Returns:
            True if the feature is supported.
        """
        ...

    def _resolve_model(self, request: ChatRequest, default_model: str | None) -> str:
        model = request.model or default_model
        if not model:
            raise InvalidRequestError("model is required", provider=self.name)
        return model

    def _log_payload(self, request: ChatRequest, label: str, value: Any) -> None:
        diag.log_json(self.debug, request.options.debug_fn, f"{self.name}.chat.{label}", value)
