"""Unit tests for chat data models and error classes.

Tests cover:
- Model instantiation and validation
- Option overlays ignoring unknown keys
- Error hierarchy and attributes
- Error classification (retryable vs non-retryable)
"""

import pytest
from pydantic import ValidationError

from uniai.errors import (
    AuthenticationError,
    DecisionParseError,
    EmulationConfigError,
    LLMError,
    NON_RETRYABLE_ERRORS,
    PolicyViolationError,
    ProviderError,
    RateLimitError,
    RETRYABLE_ERRORS,
    TimeoutError,
    ToolEmulationError,
    UnknownToolError,
)
from uniai.models import (
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
)


class TestChatMessage:
    """Tests for ChatMessage model."""

    def test_basic_user_message(self):
        """Test creating a basic user message."""
        msg = ChatMessage(role="user", content="Hello, world!")
        assert msg.role == "user"
        assert msg.content == "Hello, world!"
        assert msg.name is None
        assert msg.tool_call_id is None
        assert msg.tool_calls is None

    def test_multimodal_content(self):
        """Test message with content parts (for vision)."""
        msg = ChatMessage(
            role="user",
            content=[
                {"type": "text", "text": "What's in this image?"},
                {"type": "image_url", "image_url": {"url": "https://example.com/image.png"}},
            ],
        )
        assert isinstance(msg.content, list)
        assert len(msg.content) == 2

    def test_assistant_message_with_tool_calls(self):
        """Test assistant message with tool calls."""
        call = ToolCall(id="call_123", function=ToolCallFunction(name="get_weather"))
        msg = ChatMessage(role="assistant", tool_calls=[call])
        assert msg.content == ""
        assert msg.tool_calls[0].function.arguments == "{}"

    def test_tool_message(self):
        """Test tool response message."""
        msg = ChatMessage(role="tool", content="72°F", tool_call_id="call_123")
        assert msg.tool_call_id == "call_123"

    def test_tool_message_requires_call_id(self):
        """Test a tool message without tool_call_id is rejected."""
        with pytest.raises(ValidationError):
            ChatMessage(role="tool", content="72°F")

    def test_tool_message_rejects_empty_call_id(self):
        """Test an empty tool_call_id is rejected."""
        with pytest.raises(ValidationError):
            ChatMessage(role="tool", content="72°F", tool_call_id="")

    def test_invalid_role(self):
        """Test unknown roles are rejected."""
        with pytest.raises(ValidationError):
            ChatMessage(role="narrator", content="Once upon a time")


class TestToolChoice:
    """Tests for ToolChoice model."""

    def test_default_auto(self):
        """Test the default mode."""
        assert ToolChoice().mode == "auto"

    def test_function_requires_name(self):
        """Test function mode needs a function name."""
        with pytest.raises(ValidationError):
            ToolChoice(mode="function")
        with pytest.raises(ValidationError):
            ToolChoice(mode="function", function_name="  ")

    def test_constructors(self):
        """Test convenience constructors."""
        assert ToolChoice.none().mode == "none"
        assert ToolChoice.required().mode == "required"
        choice = ToolChoice.function("get_weather")
        assert choice.mode == "function"
        assert choice.function_name == "get_weather"

    def test_invalid_mode(self):
        """Test unknown modes are rejected."""
        with pytest.raises(ValidationError):
            ToolChoice(mode="sometimes")


class TestTool:
    """Tests for Tool model."""

    def test_from_function(self):
        """Test building a function tool."""
        tool = Tool.from_function("ping", "Check liveness")
        assert tool.type == "function"
        assert tool.function.name == "ping"
        assert tool.function.parameters is None


class TestChatOptions:
    """Tests for ChatOptions and overlays."""

    def test_defaults(self):
        """Test default option values."""
        opts = ChatOptions()
        assert opts.temperature is None
        assert opts.tools_emulation is False
        assert opts.debug_fn is None
        assert opts.openai is None

    def test_temperature_bounds(self):
        """Test temperature validation."""
        ChatOptions(temperature=0.0)
        ChatOptions(temperature=2.0)
        with pytest.raises(ValidationError):
            ChatOptions(temperature=2.5)
        with pytest.raises(ValidationError):
            ChatOptions(temperature=-0.1)

    def test_openai_overlay_ignores_unknown_keys(self):
        """Test unrecognised overlay keys are dropped."""
        overlay = OpenAIOptions(seed=7, not_a_real_key=True)
        assert overlay.seed == 7
        assert not hasattr(overlay, "not_a_real_key")

    def test_anthropic_overlay_ignores_unknown_keys(self):
        """Test unrecognised overlay keys are dropped."""
        overlay = AnthropicOptions.model_validate({"top_k": 5, "frequency_penalty": 1})
        assert overlay.top_k == 5
        assert "frequency_penalty" not in overlay.model_dump()

    def test_debug_fn_excluded_from_dump(self):
        """Test the callback is not serialized."""
        opts = ChatOptions(debug_fn=lambda label, text: None)
        assert "debug_fn" not in opts.model_dump()


class TestChatRequest:
    """Tests for ChatRequest model."""

    def test_defaults(self):
        """Test request defaults."""
        request = ChatRequest(messages=[ChatMessage(role="user", content="Hi")])
        assert request.model == ""
        assert request.tools == []
        assert request.tool_choice is None
        assert isinstance(request.options, ChatOptions)

    def test_default_collections_not_shared(self):
        """Test two requests do not share default lists."""
        a = ChatRequest(messages=[])
        b = ChatRequest(messages=[])
        a.tools.append(Tool.from_function("x"))
        assert b.tools == []


class TestChatResult:
    """Tests for ChatResult model."""

    def test_defaults(self):
        """Test result defaults."""
        result = ChatResult()
        assert result.text == ""
        assert result.tool_calls == []
        assert result.warnings == []
        assert result.usage.total_tokens == 0
        assert result.raw is None


class TestErrors:
    """Tests for the error hierarchy."""

    def test_error_str_includes_context(self):
        """Test provider and request_id appear in the message."""
        error = LLMError("failed", provider="openai", request_id="req_1")
        assert str(error) == "failed provider=openai request_id=req_1"

    def test_rate_limit_retry_after(self):
        """Test retry_after is stored."""
        assert RateLimitError("slow down", retry_after=2.5).retry_after == 2.5

    def test_emulation_errors_hierarchy(self):
        """Test emulation errors share a base and are LLM errors."""
        for cls in (EmulationConfigError, DecisionParseError, PolicyViolationError, UnknownToolError):
            assert issubclass(cls, ToolEmulationError)
            assert issubclass(cls, LLMError)

    def test_emulation_error_attributes(self):
        """Test the extra context on emulation errors."""
        assert DecisionParseError("bad", raw_text="xyz").raw_text == "xyz"
        assert PolicyViolationError("bad", mode="none").mode == "none"
        error = UnknownToolError("bad", tool_name="t", provider="stub")
        assert error.tool_name == "t"
        assert error.provider == "stub"

    def test_classification(self):
        """Test retryable vs non-retryable classification."""
        assert TimeoutError in RETRYABLE_ERRORS
        assert ProviderError in RETRYABLE_ERRORS
        assert AuthenticationError in NON_RETRYABLE_ERRORS
        assert ToolEmulationError in NON_RETRYABLE_ERRORS
        assert not set(RETRYABLE_ERRORS) & set(NON_RETRYABLE_ERRORS)
