"""Tool-calling emulation for vendors without native tool calls."""

from .orchestrator import EMULATION_WARNING, ProviderCall, emulate, new_emulated_call_id
from .parser import Decision, extract_json_object, parse_decision
from .policy import enforce_tool_choice
from .prompt import build_decision_prompt
from .requests import build_decision_request, build_final_request

__all__ = [
    "emulate",
    "ProviderCall",
    "EMULATION_WARNING",
    "new_emulated_call_id",
    "Decision",
    "parse_decision",
    "extract_json_object",
    "enforce_tool_choice",
    "build_decision_prompt",
    "build_decision_request",
    "build_final_request",
]
