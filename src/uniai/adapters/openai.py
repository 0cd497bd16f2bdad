"""OpenAI Chat Completions parameters to ChatRequest.

Lets callers that already speak the OpenAI wire format (for example an
OpenAI-compatible HTTP front end) hand their parameters to any provider.
"""

from typing import Any

from ..errors import InvalidRequestError
from ..models import (
    ChatMessage,
    ChatOptions,
    ChatRequest,
    OpenAIOptions,
    Tool,
    ToolCall,
    ToolCallFunction,
    ToolChoice,
    ToolFunction,
)

# OpenAI roles that map onto ours; "developer" is the newer name for "system"
ROLE_MAP = {
    "system": "system",
    "developer": "system",
    "user": "user",
    "assistant": "assistant",
    "tool": "tool",
}


def from_openai_message(message: dict[str, Any]) -> ChatMessage:
    """Convert one Chat Completions message dict."""
    role = ROLE_MAP.get(message.get("role", ""))
    if role is None:
        raise InvalidRequestError(f"unsupported message role: {message.get('role')!r}")

    tool_calls = None
    if message.get("tool_calls"):
        tool_calls = []
        for call in message["tool_calls"]:
            function = call.get("function") or {}
            tool_calls.append(
                ToolCall(
                    id=call.get("id", ""),
                    type=call.get("type", "function"),
                    function=ToolCallFunction(
                        name=function.get("name", ""),
                        arguments=function.get("arguments") or "{}",
                    ),
                )
            )

    return ChatMessage(
        role=role,
        content=message.get("content") or "",
        name=message.get("name"),
        tool_call_id=message.get("tool_call_id"),
        tool_calls=tool_calls,
    )


def from_openai_tools(tools: list[dict[str, Any]]) -> list[Tool]:
    """Convert function tool definitions.

    Raises:
        InvalidRequestError: On non-function (e.g. custom) tools.
    """
    out = []
    for tool in tools:
        if tool.get("type", "function") != "function":
            raise InvalidRequestError(f"unsupported tool type: {tool.get('type')!r}")
        function = tool.get("function") or {}
        if not function.get("name"):
            raise InvalidRequestError("function tool requires a name")
        out.append(
            Tool(
                function=ToolFunction(
                    name=function["name"],
                    description=function.get("description") or "",
                    parameters=function.get("parameters"),
                    strict=function.get("strict"),
                )
            )
        )
    return out


def from_openai_tool_choice(choice: str | dict[str, Any]) -> ToolChoice:
    """Convert ``"auto"``/``"none"``/``"required"`` or a named function choice."""
    if isinstance(choice, str):
        if choice not in ("auto", "none", "required"):
            raise InvalidRequestError(f"unsupported tool_choice: {choice!r}")
        return ToolChoice(mode=choice)

    if choice.get("type") == "function":
        name = (choice.get("function") or {}).get("name")
        if not name:
            raise InvalidRequestError("tool_choice function requires a name")
        return ToolChoice.function(name)

    raise InvalidRequestError(f"unsupported tool_choice type: {choice.get('type')!r}")


def from_openai_params(params: dict[str, Any]) -> ChatRequest:
    """Build a ChatRequest from Chat Completions create() parameters.

    Shared knobs map onto ChatOptions; OpenAI-only keys (seed, n,
    logprobs, ...) land in the ``openai`` overlay. Keys with no
    counterpart are ignored.

    Args:
        params: Parameters as they would be passed to
            ``client.chat.completions.create``.

    Returns:
        Equivalent vendor-neutral request.

    Raises:
        InvalidRequestError: On streaming, unsupported roles, tool types
            or tool choices.
    """
    if params.get("stream"):
        raise InvalidRequestError("streaming is not supported")

    stop = params.get("stop")
    if isinstance(stop, str):
        stop = [stop]

    max_tokens = params.get("max_tokens")
    if max_tokens is None:
        max_tokens = params.get("max_completion_tokens")

    overlay_keys = {
        key: params[key]
        for key in OpenAIOptions.model_fields
        if params.get(key) is not None
    }

    options = ChatOptions(
        temperature=params.get("temperature"),
        top_p=params.get("top_p"),
        max_tokens=max_tokens,
        stop=stop or None,
        presence_penalty=params.get("presence_penalty"),
        frequency_penalty=params.get("frequency_penalty"),
        user=params.get("user"),
        openai=OpenAIOptions(**overlay_keys) if overlay_keys else None,
    )

    tool_choice = None
    if params.get("tool_choice") is not None:
        tool_choice = from_openai_tool_choice(params["tool_choice"])

    return ChatRequest(
        model=params.get("model") or "",
        messages=[from_openai_message(m) for m in params.get("messages") or []],
        tools=from_openai_tools(params.get("tools") or []),
        tool_choice=tool_choice,
        options=options,
    )
