"""Tool-choice enforcement for emulated decisions."""

from __future__ import annotations

from ..errors import PolicyViolationError
from ..models import ToolChoice
from .parser import Decision


def enforce_tool_choice(decision: Decision, tool_choice: ToolChoice | None) -> None:
    """Check a decision against the caller's tool_choice.

    ``auto`` (or no tool_choice) accepts any decision.

    Raises:
        PolicyViolationError: If the decision conflicts with the mode.
    """
    if tool_choice is None or tool_choice.mode == "auto":
        return

    mode = tool_choice.mode
    if mode == "none":
        if decision.tool is not None:
            raise PolicyViolationError(
                "tool emulation violated tool_choice=none", mode=mode
            )
        return

    if decision.tool is None:
        raise PolicyViolationError(
            f"tool emulation expected a tool call but got null (tool_choice={mode})",
            mode=mode,
        )

    if mode == "function" and decision.tool != tool_choice.function_name:
        raise PolicyViolationError(
            f"tool emulation chose {decision.tool!r} but tool_choice requires "
            f"{tool_choice.function_name!r}",
            mode=mode,
        )
