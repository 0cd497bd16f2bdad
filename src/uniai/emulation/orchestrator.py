"""Tool-calling emulation.

For vendors or models that do not return structured tool calls, emulation
asks the model for a JSON decision in a separate request and turns the
answer into either a final text response or a synthetic tool call.

Flow per invocation:
1. Probe: the original request as-is. Native tool calls are returned verbatim.
2. Decision: a tool-less request whose only system message asks for JSON.
3. Either a tool-less final request (no tool decided) or a synthesized
   ToolCall built from the decision (no further call).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from ..errors import UnknownToolError
from ..models import ChatMessage, ChatRequest, ChatResult, ToolCall, ToolCallFunction
from .parser import parse_decision
from .policy import enforce_tool_choice
from .requests import build_decision_request, build_final_request, find_function_tool

logger = logging.getLogger(__name__)

ProviderCall = Callable[[ChatRequest], Awaitable[ChatResult]]

EMULATION_WARNING = "tool calls emulated"


def new_emulated_call_id(index: int = 0) -> str:
    """Identifier for a synthesized tool call: ``emulated_<unix-ns>_<index>``."""
    return f"emulated_{time.time_ns()}_{index}"


async def emulate(provider_call: ProviderCall, request: ChatRequest) -> ChatResult:
    """Run a chat request with tool calls emulated when the vendor returns none.

    Args:
        provider_call: Single-shot chat coroutine for the active vendor.
        request: Caller's request. Never mutated.

    Returns:
        The native result, the final text result, or a result carrying one
        synthesized tool call and no text.

    Raises:
        EmulationConfigError: The request has no function tools.
        DecisionParseError: The decision response held no usable decision.
        PolicyViolationError: The decision conflicts with tool_choice.
        UnknownToolError: The decided tool is not in the request.
        LLMError: Whatever ``provider_call`` raises, unchanged.
    """
    if not request.tools:
        return await provider_call(request)

    probe = await provider_call(request)
    if probe.tool_calls:
        logger.debug(
            "Native tool calls returned, skipping emulation",
            extra={"provider": probe.provider, "tool_calls": len(probe.tool_calls)},
        )
        return probe

    decision_request = build_decision_request(request)
    decision_result = await provider_call(decision_request)

    decision = parse_decision(decision_result.text)
    enforce_tool_choice(decision, request.tool_choice)

    warnings = [EMULATION_WARNING]
    if decision.ignored_calls:
        logger.warning(
            "Decision listed %d extra tool call(s); only the first is emulated",
            decision.ignored_calls,
            extra={"provider": decision_result.provider, "model": decision_result.model},
        )
        warnings.append(
            f"tool calls truncated: {decision.ignored_calls} emulated call(s) ignored"
        )

    if decision.tool is None:
        logger.debug("Emulated decision: no tool, issuing final request")
        result = await provider_call(build_final_request(request))
        result.warnings.extend(warnings)
        return result

    if find_function_tool(request.tools, decision.tool) is None:
        raise UnknownToolError(
            f"tool {decision.tool!r} not found in request",
            tool_name=decision.tool,
            provider=decision_result.provider,
        )

    call = ToolCall(
        id=new_emulated_call_id(0),
        type="function",
        function=ToolCallFunction(name=decision.tool, arguments=decision.arguments),
    )
    logger.info(
        "Emulated tool call",
        extra={
            "provider": decision_result.provider,
            "model": decision_result.model,
            "tool": decision.tool,
            "tool_call_id": call.id,
        },
    )
    return ChatResult(
        text="",
        model=decision_result.model,
        tool_calls=[call],
        messages=[ChatMessage(role="assistant", tool_calls=[call])],
        usage=decision_result.usage,
        warnings=warnings,
        raw=decision_result.raw,
        provider=decision_result.provider,
        finish_reason="tool_calls",
        latency_ms=decision_result.latency_ms,
        request_id=decision_result.request_id,
    )
