"""Structured intents produced by the intent classifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from models.session_models import FlowKind

UNRECOGNIZED_RESPONSE = "I'm not sure I understand. Could you please rephrase your request?"

START_ACTIONS = {
    "START_QUERY_FLOW": FlowKind.QUERY_FLIGHT,
    "START_BUY_FLOW": FlowKind.BUY_TICKET,
    "START_CHECKIN_FLOW": FlowKind.CHECK_IN,
}

INTENT_ACTIONS = (
    "CHAT",
    "QUERY_FLIGHT",
    "BUY_TICKET",
    "CHECK_IN",
    *START_ACTIONS,
    "CONTINUE_FLOW",
)


class IntentParseError(ValueError):
    """Raised when a classifier payload is not a structurally valid intent."""


@dataclass(frozen=True)
class ChatIntent:
    """Plain conversational turn; `response` is the text to show the user."""

    response: Optional[str] = None


@dataclass(frozen=True)
class ActionIntent:
    """Single-shot request carrying every parameter the action needs."""

    kind: FlowKind
    parameters: Dict[str, Any] = field(default_factory=dict)
    response: Optional[str] = None


@dataclass(frozen=True)
class StartFlowIntent:
    """User asked for an action but left parameters out."""

    flow: FlowKind
    parameters: Dict[str, Any] = field(default_factory=dict)
    response: Optional[str] = None


@dataclass(frozen=True)
class ContinueFlowIntent:
    """Answer to a follow-up question inside an active flow.

    `collected_params` is the full parameter set so far, not a delta.
    """

    flow: FlowKind
    next_step: Optional[int]
    collected_params: Dict[str, Any] = field(default_factory=dict)
    is_flow_complete: bool = False
    response: Optional[str] = None


Intent = Union[ChatIntent, ActionIntent, StartFlowIntent, ContinueFlowIntent]


def _flow_kind(value: Any, field_name: str) -> FlowKind:
    try:
        return FlowKind(value)
    except ValueError as exc:
        raise IntentParseError(f"Unknown flow in '{field_name}': {value!r}") from exc


def _params(value: Any, field_name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise IntentParseError(f"'{field_name}' must be an object, got {type(value).__name__}")
    return dict(value)


def _step(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise IntentParseError("'nextStep' must be an integer")
    try:
        step = int(value)
    except (TypeError, ValueError) as exc:
        raise IntentParseError(f"'nextStep' must be an integer, got {value!r}") from exc
    if step < 1:
        raise IntentParseError(f"'nextStep' must be positive, got {step}")
    return step


def parse_intent(payload: Mapping[str, Any]) -> Intent:
    """Convert a raw classifier payload into an intent variant.

    Unknown `action` values become a `ChatIntent` with a generic reply so the
    gateway never dispatches on something it does not recognise. Known actions
    with malformed fields raise `IntentParseError`.
    """
    if not isinstance(payload, Mapping):
        raise IntentParseError("Intent payload must be an object")

    action = payload.get("action")
    response = payload.get("response") or None
    if response is not None:
        response = str(response)

    if action == "CHAT":
        return ChatIntent(response=response)
    if action in ("QUERY_FLIGHT", "BUY_TICKET", "CHECK_IN"):
        return ActionIntent(
            kind=FlowKind(action),
            parameters=_params(payload.get("parameters"), "parameters"),
            response=response,
        )
    if action in START_ACTIONS:
        return StartFlowIntent(
            flow=START_ACTIONS[action],
            parameters=_params(payload.get("parameters"), "parameters"),
            response=response,
        )
    if action == "CONTINUE_FLOW":
        complete = payload.get("isFlowComplete", False)
        if not isinstance(complete, bool):
            raise IntentParseError("'isFlowComplete' must be a boolean")
        next_step = _step(payload.get("nextStep"))
        if not complete and next_step is None:
            raise IntentParseError("Incomplete CONTINUE_FLOW requires 'nextStep'")
        return ContinueFlowIntent(
            flow=_flow_kind(payload.get("flow"), "flow"),
            next_step=next_step,
            collected_params=_params(payload.get("collectedParams"), "collectedParams"),
            is_flow_complete=complete,
            response=response,
        )
    return ChatIntent(response=UNRECOGNIZED_RESPONSE)
