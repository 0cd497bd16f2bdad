"""Azure OpenAI provider implementation.

Same wire format as OpenAI; the deployment name stands in for the model.
"""

import os

from openai import AsyncAzureOpenAI

from ..errors import AuthenticationError, InvalidRequestError
from ..models import ChatOptions, ChatRequest, OpenAIOptions
from .openai import OpenAIProvider

AZURE_API_VERSION = "2024-08-01-preview"


class AzureOpenAIProvider(OpenAIProvider):
    """Azure OpenAI Chat Completions provider."""

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        deployment: str | None = None,
        timeout: float = 60.0,
        api_version: str = AZURE_API_VERSION,
        debug: bool = False,
    ):
        """Initialize Azure OpenAI provider.

        Args:
            api_key: Defaults to AZURE_OPENAI_API_KEY env var.
            endpoint: Defaults to AZURE_OPENAI_ENDPOINT env var.
            deployment: Defaults to AZURE_OPENAI_DEPLOYMENT env var.
            timeout: Request timeout in seconds.
            api_version: Azure REST API version.
            debug: Log request/response payloads.
        """
        super().__init__(
            api_key=api_key or os.environ.get("AZURE_OPENAI_API_KEY"),
            timeout=timeout,
            default_model="",
            debug=debug,
        )
        self._endpoint = endpoint or os.environ.get("AZURE_OPENAI_ENDPOINT")
        self._deployment = deployment or os.environ.get("AZURE_OPENAI_DEPLOYMENT")
        self._api_version = api_version

    @property
    def name(self) -> str:
        """Provider identifier."""
        return "azure"

    @property
    def display_name(self) -> str:
        return "Azure OpenAI"

    @property
    def client(self) -> AsyncAzureOpenAI:
        """Lazy-initialized Azure OpenAI client."""
        if self._client is None:
            if not self._api_key or not self._endpoint:
                raise AuthenticationError(
                    "Azure OpenAI api key and endpoint are required. Set "
                    "AZURE_OPENAI_API_KEY and AZURE_OPENAI_ENDPOINT environment variables.",
                    provider=self.name,
                )
            self._client = AsyncAzureOpenAI(
                api_key=self._api_key,
                azure_endpoint=self._endpoint,
                api_version=self._api_version,
                timeout=self._timeout,
            )
        return self._client

    def _model_for(self, request: ChatRequest) -> str:
        if not self._deployment:
            raise InvalidRequestError(
                "Azure OpenAI deployment is required. Set AZURE_OPENAI_DEPLOYMENT.",
                provider=self.name,
            )
        return self._deployment

    def _overlay(self, options: ChatOptions) -> OpenAIOptions | None:
        # Fall back to the OpenAI overlay when no Azure-specific one is given
        return options.azure or options.openai

    def _max_tokens_key(self, model: str) -> str:
        return "max_tokens"
