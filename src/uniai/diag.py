"""Request/response payload dumps for debugging provider calls.

A caller-supplied ``debug_fn`` always wins. Without one, payloads go to the
module logger only when the provider was configured with ``debug=True``.
"""

import json
import logging
from typing import Any

from .models import DebugFn

logger = logging.getLogger(__name__)


def log_json(enabled: bool, debug_fn: DebugFn | None, label: str, value: Any) -> None:
    """Serialize ``value`` to JSON and emit it under ``label``."""
    if debug_fn is None and not enabled:
        return
    try:
        payload = json.dumps(value, default=_fallback, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        payload = f"<marshal error: {e}>"
    log_text(enabled, debug_fn, label, payload)


def log_text(enabled: bool, debug_fn: DebugFn | None, label: str, text: str) -> None:
    """Emit ``text`` under ``label``."""
    if debug_fn is not None:
        debug_fn(label, text)
        return
    if not enabled:
        return
    logger.debug("%s: %s", label, text)


def _fallback(value: Any) -> Any:
    # pydantic models (SDK responses included)
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
