"""Unit tests for the emulation orchestrator.

Tests cover:
- Delegation when no tools are requested
- Native tool calls passing through untouched
- Emulated tool-call and final-answer branches
- Tool-choice enforcement and unknown tools
- Error propagation and call counts
"""

import json
import re

import pytest

from uniai.emulation.orchestrator import EMULATION_WARNING, emulate, new_emulated_call_id
from uniai.errors import (
    DecisionParseError,
    PolicyViolationError,
    ProviderError,
    UnknownToolError,
)
from uniai.models import ChatMessage, ChatRequest, ToolCall, ToolCallFunction, ToolChoice

DECISION_TOOL = '{"tool":"get_weather","arguments":{"city":"Tokyo"}}'
DECISION_NULL = '{"tool":null,"arguments":{}}'


class TestEmulateWithoutTools:
    """Tests for tool-less requests."""

    @pytest.mark.asyncio
    async def test_single_call(self, stub_provider, make_result):
        """Test a tool-less request makes exactly one call."""
        request = ChatRequest(messages=[ChatMessage(role="user", content="Hi")], model="m")
        provider = stub_provider(make_result("Hello"))

        result = await emulate(provider, request)

        assert provider.call_count == 1
        assert provider.requests[0] is request
        assert result.text == "Hello"
        assert result.warnings == []


class TestEmulateNativeToolCalls:
    """Tests for vendors that return tool calls natively."""

    @pytest.mark.asyncio
    async def test_native_result_returned_verbatim(self, stub_provider, make_result, tool_request):
        """Test native tool calls skip emulation entirely."""
        native_call = ToolCall(
            id="call_1",
            function=ToolCallFunction(name="get_weather", arguments='{"city":"Tokyo"}'),
        )
        native = make_result(tool_calls=[native_call])
        provider = stub_provider(native)

        result = await emulate(provider, tool_request)

        assert result is native
        assert provider.call_count == 1
        assert result.warnings == []


class TestEmulateToolBranch:
    """Tests for decisions naming a tool."""

    @pytest.mark.asyncio
    async def test_synthesizes_tool_call(self, stub_provider, make_result, tool_request):
        """Test the end-to-end emulated tool call."""
        decision = make_result(DECISION_TOOL, model="decision-model", raw={"id": "r1"})
        provider = stub_provider(make_result("I can't call tools"), decision)

        result = await emulate(provider, tool_request)

        assert provider.call_count == 2
        assert len(result.tool_calls) == 1
        call = result.tool_calls[0]
        assert call.type == "function"
        assert call.function.name == "get_weather"
        assert call.function.arguments == '{"city":"Tokyo"}'
        assert json.loads(call.function.arguments) == {"city": "Tokyo"}
        assert result.text == ""
        assert result.warnings == [EMULATION_WARNING]
        assert result.finish_reason == "tool_calls"

    @pytest.mark.asyncio
    async def test_carries_decision_metadata(self, stub_provider, make_result, tool_request):
        """Test model, usage and raw come from the decision call."""
        decision = make_result(DECISION_TOOL, model="decision-model", raw={"id": "r1"})
        provider = stub_provider(make_result("no tools", model="probe-model"), decision)

        result = await emulate(provider, tool_request)

        assert result.model == "decision-model"
        assert result.usage == decision.usage
        assert result.raw == {"id": "r1"}
        assert result.messages[0].role == "assistant"
        assert result.messages[0].tool_calls == result.tool_calls

    @pytest.mark.asyncio
    async def test_call_id_format(self, stub_provider, make_result, tool_request):
        """Test the synthesized identifier format."""
        provider = stub_provider(make_result("no"), make_result(DECISION_TOOL))

        result = await emulate(provider, tool_request)

        assert re.fullmatch(r"emulated_\d+_0", result.tool_calls[0].id)

    @pytest.mark.asyncio
    async def test_decision_request_shape(self, stub_provider, make_result, tool_request):
        """Test the decision request is tool-less with the prompt as system message."""
        provider = stub_provider(make_result("no"), make_result(DECISION_TOOL))

        await emulate(provider, tool_request)

        probe_request, decision_request = provider.requests
        assert probe_request is tool_request
        assert decision_request.tools == []
        assert decision_request.tool_choice is None
        assert [m.role for m in decision_request.messages] == ["system", "user"]
        assert "get_weather" in decision_request.messages[0].content

    @pytest.mark.asyncio
    async def test_caller_request_not_mutated(self, stub_provider, make_result, tool_request):
        """Test the caller's request is unchanged after emulation."""
        before = tool_request.model_dump()
        provider = stub_provider(make_result("no"), make_result(DECISION_TOOL))

        await emulate(provider, tool_request)

        assert tool_request.model_dump() == before

    @pytest.mark.asyncio
    async def test_unknown_tool(self, stub_provider, make_result, tool_request):
        """Test a decided tool missing from the request fails."""
        provider = stub_provider(
            make_result("no"),
            make_result('{"tool": "launch_rocket", "arguments": {}}'),
        )

        with pytest.raises(UnknownToolError) as exc_info:
            await emulate(provider, tool_request)

        assert exc_info.value.tool_name == "launch_rocket"
        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_array_form_truncation_warning(self, stub_provider, make_result, tool_request):
        """Test extra array entries are reported, not silently dropped."""
        decision = make_result(
            '{"tools": [{"tool": "get_weather", "arguments": {"city": "Tokyo"}},'
            ' {"tool": "get_weather", "arguments": {"city": "Osaka"}}]}'
        )
        provider = stub_provider(make_result("no"), decision)

        result = await emulate(provider, tool_request)

        assert len(result.tool_calls) == 1
        assert json.loads(result.tool_calls[0].function.arguments) == {"city": "Tokyo"}
        assert result.warnings[0] == EMULATION_WARNING
        assert result.warnings[1] == "tool calls truncated: 1 emulated call(s) ignored"


class TestEmulateFinalBranch:
    """Tests for decisions naming no tool."""

    @pytest.mark.asyncio
    async def test_final_request_issued(self, stub_provider, make_result, tool_request):
        """Test a null decision triggers a tool-less final call."""
        final = make_result("It is sunny in Tokyo.")
        provider = stub_provider(make_result("no"), make_result(DECISION_NULL), final)

        result = await emulate(provider, tool_request)

        assert provider.call_count == 3
        assert result is final
        assert result.text == "It is sunny in Tokyo."
        assert result.tool_calls == []
        assert result.warnings == [EMULATION_WARNING]

    @pytest.mark.asyncio
    async def test_final_request_shape(self, stub_provider, make_result, tool_request):
        """Test the final request keeps the original messages without tools."""
        provider = stub_provider(make_result("no"), make_result(DECISION_NULL), make_result("ok"))

        await emulate(provider, tool_request)

        final_request = provider.requests[2]
        assert final_request.tools == []
        assert final_request.tool_choice is None
        assert final_request.options.tools_emulation is False
        assert [m.content for m in final_request.messages] == [
            m.content for m in tool_request.messages
        ]


class TestEmulatePolicy:
    """Tests for tool_choice enforcement inside the orchestrator."""

    @pytest.mark.asyncio
    async def test_none_violation(self, stub_provider, make_result, tool_request):
        """Test a tool decision under tool_choice=none aborts."""
        tool_request.tool_choice = ToolChoice.none()
        provider = stub_provider(make_result("no"), make_result(DECISION_TOOL))

        with pytest.raises(PolicyViolationError):
            await emulate(provider, tool_request)

        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_required_violation(self, stub_provider, make_result, tool_request):
        """Test a null decision under tool_choice=required aborts without a final call."""
        tool_request.tool_choice = ToolChoice.required()
        provider = stub_provider(make_result("no"), make_result(DECISION_NULL))

        with pytest.raises(PolicyViolationError):
            await emulate(provider, tool_request)

        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_function_match(self, stub_provider, make_result, tool_request):
        """Test tool_choice=function accepts the named tool."""
        tool_request.tool_choice = ToolChoice.function("get_weather")
        provider = stub_provider(make_result("no"), make_result(DECISION_TOOL))

        result = await emulate(provider, tool_request)

        assert result.tool_calls[0].function.name == "get_weather"


class TestEmulateErrors:
    """Tests for failure propagation."""

    @pytest.mark.asyncio
    async def test_probe_error_propagates(self, stub_provider, tool_request):
        """Test a failing probe call is raised unchanged with no further calls."""
        error = ProviderError("boom", provider="stub")
        provider = stub_provider(error)

        with pytest.raises(ProviderError) as exc_info:
            await emulate(provider, tool_request)

        assert exc_info.value is error
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_decision_error_propagates(self, stub_provider, make_result, tool_request):
        """Test a failing decision call is raised unchanged."""
        error = ProviderError("boom", provider="stub")
        provider = stub_provider(make_result("no"), error)

        with pytest.raises(ProviderError) as exc_info:
            await emulate(provider, tool_request)

        assert exc_info.value is error
        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_unparseable_decision(self, stub_provider, make_result, tool_request):
        """Test prose decisions fail loudly."""
        provider = stub_provider(make_result("no"), make_result("I think you want the weather"))

        with pytest.raises(DecisionParseError):
            await emulate(provider, tool_request)

        assert provider.call_count == 2


class TestNewEmulatedCallId:
    """Tests for identifier synthesis."""

    def test_index_suffix(self):
        """Test the index is the last component."""
        assert new_emulated_call_id(3).endswith("_3")

    def test_prefix(self):
        """Test the emulated_ prefix and numeric timestamp."""
        prefix, timestamp, index = new_emulated_call_id().split("_")
        assert prefix == "emulated"
        assert timestamp.isdigit()
        assert index == "0"
