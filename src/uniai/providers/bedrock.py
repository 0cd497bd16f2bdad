"""Anthropic-on-Bedrock provider implementation.

Reuses the Anthropic Messages mapping; only the client and the option
overlay differ. AWS credentials are resolved by the SDK (env vars,
profiles, instance roles) unless passed explicitly.
"""

import os

from anthropic import AsyncAnthropicBedrock

from ..errors import AuthenticationError
from ..models import AnthropicOptions, ChatOptions
from .anthropic import AnthropicProvider


class BedrockProvider(AnthropicProvider):
    """Anthropic models served through AWS Bedrock."""

    def __init__(
        self,
        aws_region: str | None = None,
        aws_access_key: str | None = None,
        aws_secret_key: str | None = None,
        aws_session_token: str | None = None,
        timeout: float = 60.0,
        default_model: str = "anthropic.claude-sonnet-4-5-20250929-v1:0",
        debug: bool = False,
    ):
        """Initialize Bedrock provider.

        Args:
            aws_region: Defaults to AWS_REGION, then AWS_DEFAULT_REGION env vars.
            aws_access_key: Optional explicit access key.
            aws_secret_key: Optional explicit secret key.
            aws_session_token: Optional session token.
            timeout: Request timeout in seconds.
            default_model: Bedrock model ID used when the request has none.
            debug: Log request/response payloads.
        """
        super().__init__(api_key=None, timeout=timeout, default_model=default_model, debug=debug)
        self._aws_region = (
            aws_region
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
        )
        self._aws_access_key = aws_access_key
        self._aws_secret_key = aws_secret_key
        self._aws_session_token = aws_session_token

    @property
    def name(self) -> str:
        """Provider identifier."""
        return "bedrock"

    @property
    def display_name(self) -> str:
        return "Bedrock"

    @property
    def client(self) -> AsyncAnthropicBedrock:
        """Lazy-initialized Bedrock client."""
        if self._client is None:
            if not self._aws_region:
                raise AuthenticationError(
                    "Bedrock region not configured. Set AWS_REGION environment variable.",
                    provider=self.name,
                )
            self._client = AsyncAnthropicBedrock(
                aws_region=self._aws_region,
                aws_access_key=self._aws_access_key,
                aws_secret_key=self._aws_secret_key,
                aws_session_token=self._aws_session_token,
                timeout=self._timeout,
            )
        return self._client

    def _overlay(self, options: ChatOptions) -> AnthropicOptions | None:
        return options.bedrock
