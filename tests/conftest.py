"""Pytest fixtures for testing."""

from collections.abc import Callable
from typing import Any

import pytest

from uniai.models import ChatMessage, ChatRequest, ChatResult, Tool, ToolChoice, Usage


class StubProvider:
    """Scripted provider call: returns (or raises) queued items in order."""

    def __init__(self, *items: ChatResult | Exception):
        self._items = list(items)
        self.requests: list[ChatRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def __call__(self, request: ChatRequest) -> ChatResult:
        self.requests.append(request)
        if not self._items:
            raise AssertionError("unexpected provider call")
        item = self._items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _make_result(text: str = "", tool_calls: list | None = None, **kwargs: Any) -> ChatResult:
    kwargs.setdefault("model", "test-model")
    kwargs.setdefault("provider", "stub")
    kwargs.setdefault("usage", Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15))
    return ChatResult(text=text, tool_calls=tool_calls or [], **kwargs)


@pytest.fixture
def make_result() -> Callable[..., ChatResult]:
    """Factory for ChatResult objects."""
    return _make_result


@pytest.fixture
def stub_provider() -> Callable[..., StubProvider]:
    """Factory for scripted provider calls."""
    return StubProvider


@pytest.fixture
def weather_tool() -> Tool:
    """A single get_weather function tool."""
    return Tool.from_function(
        name="get_weather",
        description="Get the current weather for a city",
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
    )


@pytest.fixture
def tool_request(weather_tool: Tool) -> ChatRequest:
    """Request with a system prompt, one user turn and the weather tool."""
    return ChatRequest(
        model="test-model",
        messages=[
            ChatMessage(role="system", content="You are a helpful assistant."),
            ChatMessage(role="user", content="What's the weather in Tokyo?"),
        ],
        tools=[weather_tool],
        tool_choice=ToolChoice.auto(),
    )
