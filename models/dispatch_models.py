"""Directives emitted by the flow state machine and outcomes of backend calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from models.session_models import FlowKind


@dataclass(frozen=True)
class NoDispatch:
    """Conversational turn or mid-flow prompt; no backend call."""


@dataclass(frozen=True)
class Execute:
    """Call exactly one action adapter with `parameters`."""

    kind: FlowKind
    parameters: Dict[str, Any] = field(default_factory=dict)


Directive = Union[NoDispatch, Execute]

NO_DISPATCH = NoDispatch()


@dataclass(frozen=True)
class Success:
    payload: Any


@dataclass(frozen=True)
class DomainError:
    """The backend answered and rejected the request."""

    status_code: Optional[int]
    error_body: Any = None


@dataclass(frozen=True)
class TransportError:
    """The call failed without a usable answer; backend state is unknown."""

    message: str


Outcome = Union[Success, DomainError, TransportError]


def outcome_to_dict(outcome: Outcome) -> Dict[str, Any]:
    """Return a JSON-friendly description of an outcome for prompts and logs."""
    if isinstance(outcome, Success):
        return {"status": "success", "data": outcome.payload}
    if isinstance(outcome, DomainError):
        return {"status": "rejected", "statusCode": outcome.status_code, "errorBody": outcome.error_body}
    return {"status": "unknown", "error": outcome.message}
