from __future__ import annotations

import asyncio

import pytest

from models.dispatch_models import DomainError, Execute, Success, TransportError, outcome_to_dict
from models.session_models import FlowKind
from services.airline.errors import BackendRejected, BackendUnavailable
from services.flow.dispatcher import ActionDispatcher
from tests.conftest import FakeAdapters


def _execute(adapters: FakeAdapters, kind: FlowKind, params=None):
	return asyncio.run(ActionDispatcher(adapters).execute(Execute(kind=kind, parameters=params or {})))


@pytest.mark.parametrize(
	"kind, adapter",
	[
		(FlowKind.QUERY_FLIGHT, "search_flights"),
		(FlowKind.BUY_TICKET, "book_ticket"),
		(FlowKind.CHECK_IN, "check_in"),
	],
)
def test_each_kind_calls_one_adapter_with_params_verbatim(kind, adapter) -> None:
	adapters = FakeAdapters()
	outcome = _execute(adapters, kind, {"flightNumber": "FL1", "extra": True})
	assert adapters.calls == [(adapter, {"flightNumber": "FL1", "extra": True})]
	assert isinstance(outcome, Success)


def test_rejection_becomes_domain_error() -> None:
	adapters = FakeAdapters(check_in=BackendRejected(404, {"title": "Ticket not found"}))
	outcome = _execute(adapters, FlowKind.CHECK_IN)
	assert outcome == DomainError(status_code=404, error_body={"title": "Ticket not found"})
	assert outcome_to_dict(outcome)["status"] == "rejected"


def test_unavailable_becomes_transport_error() -> None:
	adapters = FakeAdapters(book_ticket=BackendUnavailable("connection reset"))
	outcome = _execute(adapters, FlowKind.BUY_TICKET)
	assert outcome == TransportError(message="connection reset")
	assert outcome_to_dict(outcome) == {"status": "unknown", "error": "connection reset"}


def test_unexpected_exception_becomes_transport_error() -> None:
	adapters = FakeAdapters(search_flights=KeyError("token"))
	outcome = _execute(adapters, FlowKind.QUERY_FLIGHT)
	assert isinstance(outcome, TransportError)
	assert outcome.message.startswith("KeyError")


@pytest.mark.parametrize(
	"kind, adapter, payload",
	[
		(FlowKind.QUERY_FLIGHT, "search_flights", {"flights": []}),
		(FlowKind.BUY_TICKET, "book_ticket", ["TK1"]),
		(FlowKind.CHECK_IN, "check_in", None),
	],
)
def test_malformed_payload_becomes_transport_error(kind, adapter, payload) -> None:
	outcome = _execute(FakeAdapters(**{adapter: payload}), kind)
	assert isinstance(outcome, TransportError)


def test_success_payload_is_passed_through() -> None:
	flights = [{"flightNumber": "FL1", "price": 120}]
	outcome = _execute(FakeAdapters(search_flights=flights), FlowKind.QUERY_FLIGHT)
	assert outcome == Success(payload=flights)
	assert outcome_to_dict(outcome) == {"status": "success", "data": flights}


def test_dispatcher_requires_adapters() -> None:
	with pytest.raises(ValueError):
		ActionDispatcher(None)
