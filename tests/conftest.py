from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import aiosqlite
import pytest

from models.intent import Intent
from models.session_models import Message
from services.flow.dispatcher import ActionDispatcher
from services.flow.orchestrator import Orchestrator
from services.flow.session_registry import SessionRegistry
from services.openai.response_composer import ResponseComposer
from services.transcript_store import TranscriptStore


@dataclass
class InMemoryMessageDAL:
	"""MessageDAL stand-in that keeps rows in a list; `fail` makes every call raise."""

	rows: List[Message] = field(default_factory=list)
	fail: bool = False

	def _check(self) -> None:
		if self.fail:
			raise aiosqlite.OperationalError("database is locked")

	async def insert_message(self, message: Message) -> bool:
		self._check()
		if any(row.id == message.id and row.user_id == message.user_id for row in self.rows):
			return False
		self.rows.append(message)
		return True

	async def recent_messages(self, user_id: str, limit: int = 20) -> List[Message]:
		self._check()
		mine = [row for row in self.rows if row.user_id == user_id]
		return mine[-limit:]

	async def delete_for_user(self, user_id: str) -> int:
		self._check()
		before = len(self.rows)
		self.rows = [row for row in self.rows if row.user_id != user_id]
		return before - len(self.rows)


Script = Union[Intent, Callable[[str, Mapping[str, Any]], Intent]]


class ScriptedClassifier:
	"""Return queued intents in order; callables receive (text, context)."""

	def __init__(self, *script: Script) -> None:
		self.script = list(script)
		self.calls: List[Tuple[str, Dict[str, Any]]] = []
		self.gate: Optional[asyncio.Event] = None

	async def classify(self, message: str, context: Mapping[str, Any]) -> Intent:
		self.calls.append((message, dict(context)))
		if self.gate is not None and len(self.calls) == 1:
			await self.gate.wait()
		step = self.script.pop(0)
		return step(message, context) if callable(step) else step


class FakeAdapters:
	"""Action adapters that record calls and return or raise configured results."""

	def __init__(self, **results: Any) -> None:
		self.results = {
			"search_flights": [],
			"book_ticket": {"ticketNumber": "TK1"},
			"check_in": {"seat": "12A"},
		}
		self.results.update(results)
		self.calls: List[Tuple[str, Dict[str, Any]]] = []

	async def _respond(self, name: str, params: Mapping[str, Any]) -> Any:
		self.calls.append((name, dict(params)))
		result = self.results[name]
		if isinstance(result, Exception):
			raise result
		return result

	async def search_flights(self, params: Mapping[str, Any]) -> Any:
		return await self._respond("search_flights", params)

	async def book_ticket(self, params: Mapping[str, Any]) -> Any:
		return await self._respond("book_ticket", params)

	async def check_in(self, params: Mapping[str, Any]) -> Any:
		return await self._respond("check_in", params)


@dataclass
class Harness:
	orchestrator: Orchestrator
	classifier: ScriptedClassifier
	adapters: FakeAdapters
	dal: InMemoryMessageDAL

	@property
	def registry(self) -> SessionRegistry:
		return self.orchestrator.registry


def build_harness(
	classifier: Optional[ScriptedClassifier] = None,
	adapters: Optional[FakeAdapters] = None,
	dal: Optional[InMemoryMessageDAL] = None,
	**registry_options: Any,
) -> Harness:
	classifier = classifier or ScriptedClassifier()
	adapters = adapters or FakeAdapters()
	dal = dal or InMemoryMessageDAL()
	registry_options.setdefault("history_limit", 20)
	orchestrator = Orchestrator(
		registry=SessionRegistry(TranscriptStore(dal), **registry_options),
		classifier=classifier,
		dispatcher=ActionDispatcher(adapters),
		composer=ResponseComposer(None),
	)
	return Harness(orchestrator=orchestrator, classifier=classifier, adapters=adapters, dal=dal)


@pytest.fixture
def harness_factory():
	return build_harness
