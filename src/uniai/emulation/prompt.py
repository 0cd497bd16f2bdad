"""Decision prompt for tool-calling emulation.

The prompt asks the model for a JSON-only decision naming one tool (with
arguments) or null. The exact wording is not a contract; only that the
answer parses with ``parse_decision``.
"""

from __future__ import annotations

import json
from typing import Any

from ..errors import EmulationConfigError
from ..models import Tool, ToolChoice

DECISION_SYSTEM_PROMPT = """You are a tool-calling engine.
When you need a tool, output ONLY JSON:
{"tool": "get_weather", "arguments": {"city": "Tokyo"}}
If no tool needed, output:
{"tool": null, "arguments": {}}
Do not add any other text."""


def function_tool_specs(tools: list[Tool]) -> list[dict[str, Any]]:
    """Describe each function tool as ``{name, description?, parameters?}``."""
    specs = []
    for tool in tools:
        if tool.type != "function":
            continue
        spec: dict[str, Any] = {"name": tool.function.name}
        if tool.function.description:
            spec["description"] = tool.function.description
        if tool.function.parameters:
            spec["parameters"] = tool.function.parameters
        specs.append(spec)
    return specs


def tool_choice_directive(tool_choice: ToolChoice | None) -> str | None:
    """Instruction line enforcing the caller's tool_choice, if it constrains anything."""
    if tool_choice is None:
        return None
    if tool_choice.mode == "none":
        return "You MUST NOT call any tool. Return tool=null."
    if tool_choice.mode == "required":
        return "You MUST call a tool. tool must not be null."
    if tool_choice.mode == "function" and tool_choice.function_name:
        return f"You MUST call the tool named {json.dumps(tool_choice.function_name)}."
    return None


def build_decision_prompt(tools: list[Tool], tool_choice: ToolChoice | None = None) -> str:
    """Build the system prompt for a decision request.

    Args:
        tools: Tools from the original request.
        tool_choice: The original request's tool_choice.

    Returns:
        Prompt text.

    Raises:
        EmulationConfigError: If there are no function tools to choose from.
    """
    specs = function_tool_specs(tools)
    if not specs:
        raise EmulationConfigError("no function tools available for emulation")

    lines = [
        DECISION_SYSTEM_PROMPT,
        f"Available tools (JSON): {json.dumps(specs, ensure_ascii=False)}",
    ]
    directive = tool_choice_directive(tool_choice)
    if directive:
        lines.append(directive)
    return "\n".join(lines)
