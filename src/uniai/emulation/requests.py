"""Request variants issued during tool-calling emulation."""

from __future__ import annotations

from ..models import ChatMessage, ChatRequest, Tool
from .prompt import build_decision_prompt


def _strip_tools(request: ChatRequest) -> ChatRequest:
    out = request.clone()
    out.tools = []
    out.tool_choice = None
    out.options.tools_emulation = False
    return out


def build_decision_request(request: ChatRequest) -> ChatRequest:
    """Clone ``request`` into a decision-only request.

    System messages are replaced by the decision prompt; tools and
    tool_choice are cleared so the vendor answers in plain text.

    Raises:
        EmulationConfigError: If the request has no function tools.
    """
    prompt = build_decision_prompt(request.tools, request.tool_choice)
    out = _strip_tools(request)
    out.messages = [ChatMessage(role="system", content=prompt)] + [
        m for m in out.messages if m.role != "system"
    ]
    return out


def build_final_request(request: ChatRequest) -> ChatRequest:
    """Clone ``request`` without tools, keeping every message."""
    return _strip_tools(request)


def find_function_tool(tools: list[Tool], name: str) -> Tool | None:
    """Return the function tool called ``name``, or None."""
    for tool in tools:
        if tool.type == "function" and tool.function.name == name:
            return tool
    return None
