"""Read function calls, text, and token usage out of Responses API results."""

import json
from typing import Any, Dict, Iterable, Optional


def _output_items(response: Any) -> Iterable[Any]:
    return getattr(response, "output", None) or []


def parse_function_call(response: Any, *, tool_name: str) -> Dict[str, Any]:
    """Return the decoded arguments of the first `tool_name` call in the response."""
    for item in _output_items(response):
        if getattr(item, "type", None) != "function_call" or getattr(item, "name", None) != tool_name:
            continue
        arguments = json.loads(getattr(item, "arguments", None) or "{}")
        if not isinstance(arguments, dict):
            raise RuntimeError(f"Arguments for '{tool_name}' are not a JSON object.")
        return arguments
    raise RuntimeError(f"Model did not call '{tool_name}'.")


def extract_text(response: Any) -> str:
    """Return the first output_text block, or the SDK's aggregated `output_text`."""
    for item in _output_items(response):
        if getattr(item, "type", None) == "message":
            for block in getattr(item, "content", None) or []:
                if getattr(block, "type", None) == "output_text":
                    return getattr(block, "text", None) or ""
    return getattr(response, "output_text", None) or ""


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None),
        "output_tokens": getattr(usage, "output_tokens", None),
    }
