"""Execute dispatch directives against the airline backend adapters."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Protocol

from models.dispatch_models import DomainError, Execute, Outcome, Success, TransportError
from models.session_models import FlowKind
from services.airline.errors import BackendRejected, BackendUnavailable


class ActionAdapters(Protocol):
	async def search_flights(self, params: Mapping[str, Any]) -> Any: ...

	async def book_ticket(self, params: Mapping[str, Any]) -> Any: ...

	async def check_in(self, params: Mapping[str, Any]) -> Any: ...


def _well_formed(kind: FlowKind, payload: Any) -> bool:
	if kind is FlowKind.QUERY_FLIGHT:
		return isinstance(payload, list)
	return isinstance(payload, dict)


class ActionDispatcher:
	"""Map an Execute directive to exactly one adapter call and normalise the result."""

	def __init__(self, adapters: ActionAdapters) -> None:
		if adapters is None:
			raise ValueError("Action adapters are required.")
		self._routes: Dict[FlowKind, Callable[[Mapping[str, Any]], Awaitable[Any]]] = {
			FlowKind.QUERY_FLIGHT: adapters.search_flights,
			FlowKind.BUY_TICKET: adapters.book_ticket,
			FlowKind.CHECK_IN: adapters.check_in,
		}

	async def execute(self, directive: Execute) -> Outcome:
		"""Call the adapter for `directive.kind` once with its parameters verbatim."""
		call = self._routes[directive.kind]
		try:
			payload = await call(directive.parameters)
		except BackendRejected as exc:
			outcome: Outcome = DomainError(status_code=exc.status_code, error_body=exc.error_body)
		except BackendUnavailable as exc:
			outcome = TransportError(message=str(exc))
		except Exception as exc:
			# Anything else leaves the backend state unknown.
			logging.exception("Unexpected failure dispatching %s", directive.kind.value)
			outcome = TransportError(message=f"{type(exc).__name__}: {exc}")
		else:
			if _well_formed(directive.kind, payload):
				outcome = Success(payload=payload)
			else:
				outcome = TransportError(message=f"Malformed {directive.kind.value} response")
		logging.info("Dispatched %s -> %s", directive.kind.value, type(outcome).__name__)
		return outcome
