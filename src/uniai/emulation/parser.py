"""Decision parsing for tool-calling emulation.

Models asked for a JSON-only decision still wrap it in code fences or
surround it with prose. Extraction is an ordered pipeline of small
strategies; the first one yielding a JSON object wins.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..errors import DecisionParseError

# Cap on how much offending model output is quoted in error messages
MAX_QUOTED_CHARS = 200

_FENCE_RE = re.compile(r"```[ \t]*([A-Za-z0-9_+-]*)[ \t]*\n?(.*?)(?:```|$)", re.DOTALL)


@dataclass(frozen=True)
class Decision:
    """A parsed tool-or-not decision.

    ``tool`` is None when the model decided no tool is needed.
    ``ignored_calls`` counts array entries after the first one.
    """

    tool: str | None
    arguments: str = "{}"
    ignored_calls: int = 0


def _load_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def from_fenced_block(text: str) -> dict[str, Any] | None:
    """Parse the body of the first ``` fenced block, ignoring its language tag.

    Prose inside the fence is tolerated by brace-scanning the body only.
    """
    match = _FENCE_RE.search(text)
    if match is None:
        return None
    body = match.group(2).strip()
    obj = _load_object(body)
    if obj is None:
        obj = from_outer_braces(body)
    return obj


def from_whole_text(text: str) -> dict[str, Any] | None:
    """Parse the text as-is."""
    return _load_object(text)


def from_outer_braces(text: str) -> dict[str, Any] | None:
    """Parse the span from the first '{' to the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return _load_object(text[start : end + 1])


EXTRACTION_STRATEGIES: tuple[Callable[[str], dict[str, Any] | None], ...] = (
    from_whole_text,
    from_fenced_block,
    from_outer_braces,
)


def _quote(text: str) -> str:
    if len(text) > MAX_QUOTED_CHARS:
        text = text[:MAX_QUOTED_CHARS] + "..."
    return repr(text)


def extract_json_object(text: str) -> dict[str, Any]:
    """Recover a JSON object from free-form model output.

    Raises:
        DecisionParseError: If the text is empty or holds no JSON object.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise DecisionParseError("empty tool decision", raw_text=text)

    for strategy in EXTRACTION_STRATEGIES:
        obj = strategy(trimmed)
        if obj is not None:
            return obj

    raise DecisionParseError(
        f"invalid tool decision JSON: {_quote(trimmed)}",
        raw_text=text,
    )


def _normalize_tool(value: Any, raw_text: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecisionParseError(
            f"tool must be string or null, got {type(value).__name__}",
            raw_text=raw_text,
        )
    name = value.strip()
    if not name or name == "null":
        return None
    return name


def _normalize_arguments(value: Any, raw_text: str) -> str:
    if value is None:
        return "{}"
    if isinstance(value, str):
        # Some models double-encode the arguments object
        try:
            decoded = json.loads(value)
        except (json.JSONDecodeError, ValueError):
            raise DecisionParseError(
                "tool arguments must be valid JSON", raw_text=raw_text
            ) from None
        if not isinstance(decoded, dict):
            raise DecisionParseError(
                "tool arguments must be a JSON object", raw_text=raw_text
            )
        return value.strip()
    if not isinstance(value, dict):
        raise DecisionParseError(
            "tool arguments must be a JSON object", raw_text=raw_text
        )
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def parse_decision(text: str) -> Decision:
    """Parse a decision response into a Decision.

    Accepts ``{"tool": ..., "arguments": {...}}`` and the array form
    ``{"tools": [{"tool": ..., "arguments": {...}}, ...]}``, of which only
    the first entry is used.

    Raises:
        DecisionParseError: If no decision can be recovered.
    """
    obj = extract_json_object(text)
    ignored = 0

    if "tool" not in obj and "tools" in obj:
        entries = obj["tools"]
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise DecisionParseError("tools must be an array", raw_text=text)
        if not entries:
            return Decision(tool=None)
        ignored = len(entries) - 1
        obj = entries[0]
        if not isinstance(obj, dict):
            raise DecisionParseError("tools entries must be objects", raw_text=text)

    tool = _normalize_tool(obj.get("tool"), text)
    if tool is None:
        return Decision(tool=None, ignored_calls=ignored)

    return Decision(
        tool=tool,
        arguments=_normalize_arguments(obj.get("arguments"), text),
        ignored_calls=ignored,
    )
