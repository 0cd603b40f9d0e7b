"""Utilities to build text input payloads for the Responses API."""

from typing import Any, Dict, List


def text_message(role: str, text: str) -> Dict[str, Any]:
    """Wrap `text` as a single Responses API message entry."""
    return {"type": "message", "role": role, "content": [{"type": "input_text", "text": text}]}


def build_inputs(system_prompt: str, *user_texts: str) -> List[Dict[str, Any]]:
    """Build the Responses API input array: one system entry, then each user text in order."""
    inputs: List[Dict[str, Any]] = [text_message("system", system_prompt)]
    inputs.extend(text_message("user", text) for text in user_texts if text)
    return inputs
