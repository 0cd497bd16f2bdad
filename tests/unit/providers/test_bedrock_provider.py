"""Unit tests for Bedrock provider."""

import pytest

from uniai.errors import AuthenticationError
from uniai.models import AnthropicOptions, ChatMessage, ChatOptions, ChatRequest
from uniai.providers.bedrock import BedrockProvider


class TestBedrockProvider:
    """Tests for Bedrock-specific behaviour."""

    def test_provider_name(self):
        """Test provider name is correct."""
        assert BedrockProvider(aws_region="us-east-1").name == "bedrock"

    def test_region_from_env(self, monkeypatch):
        """Test the region falls back to AWS_REGION."""
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        assert BedrockProvider()._aws_region == "eu-west-1"

    def test_missing_region(self, monkeypatch):
        """Test the client needs a region."""
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
        with pytest.raises(AuthenticationError):
            BedrockProvider().client

    def test_default_model(self):
        """Test a Bedrock model ID is used by default."""
        request = ChatRequest(messages=[ChatMessage(role="user", content="Hi")])
        bedrock_request = BedrockProvider(aws_region="us-east-1")._build_request(request)
        assert bedrock_request["model"].startswith("anthropic.")

    def test_bedrock_overlay(self):
        """Test the bedrock overlay applies and the anthropic one does not."""
        request = ChatRequest(
            messages=[ChatMessage(role="user", content="Hi")],
            options=ChatOptions(
                bedrock=AnthropicOptions(top_k=3),
                anthropic=AnthropicOptions(top_k=9),
            ),
        )
        bedrock_request = BedrockProvider(aws_region="us-east-1")._build_request(request)
        assert bedrock_request["top_k"] == 3
