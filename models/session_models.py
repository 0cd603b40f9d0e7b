"""Session domain models for multi-turn airline conversations."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4


class FlowKind(str, enum.Enum):
	"""Backend actions a conversation can be working towards."""

	QUERY_FLIGHT = "QUERY_FLIGHT"
	BUY_TICKET = "BUY_TICKET"
	CHECK_IN = "CHECK_IN"


class Sender(str, enum.Enum):
	USER = "user"
	ASSISTANT = "assistant"


def _now_iso() -> str:
	return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Message:
	"""Immutable chat message shared by the session cache and the transcript store."""

	content: str
	sender: Sender
	user_id: str
	id: str = field(default_factory=lambda: uuid4().hex)
	timestamp: str = field(default_factory=_now_iso)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"content": self.content,
			"sender": self.sender.value,
			"userId": self.user_id,
			"timestamp": self.timestamp,
		}

	@classmethod
	def from_dict(cls, payload: Dict[str, Any], *, user_id: Optional[str] = None) -> "Message":
		"""Build a message from its wire form, filling in id and timestamp when absent."""
		sender = payload.get("sender") or Sender.USER.value
		if sender not in (Sender.USER.value, Sender.ASSISTANT.value):
			# Older clients used "bot" for assistant replies.
			sender = Sender.ASSISTANT.value if sender == "bot" else Sender.USER.value
		kwargs: Dict[str, Any] = {
			"content": str(payload.get("content") or "").strip(),
			"sender": Sender(sender),
			"user_id": user_id or payload.get("userId") or "",
		}
		if payload.get("id"):
			kwargs["id"] = str(payload["id"])
		if payload.get("timestamp"):
			kwargs["timestamp"] = str(payload["timestamp"])
		return cls(**kwargs)


@dataclass(frozen=True)
class FlowState:
	"""Snapshot of where a session is within a slot-filling flow.

	`active_flow is None` stands for the NONE flow; `current_step` must be
	None exactly when no flow is active.
	"""

	active_flow: Optional[FlowKind] = None
	current_step: Optional[int] = None
	collected_params: Dict[str, Any] = field(default_factory=dict)

	def as_context(self) -> Dict[str, Any]:
		"""Return the conversation context handed to the intent classifier."""
		return {
			"activeFlow": self.active_flow.value if self.active_flow else None,
			"currentStep": self.current_step,
			"collectedParams": dict(self.collected_params),
		}


@dataclass
class Session:
	"""In-memory conversational state for one live connection."""

	session_key: str
	user_id: str
	flow: FlowState = field(default_factory=FlowState)
	history: List[Message] = field(default_factory=list)
	closed: bool = False
	# Sessions not bound to a connection (REST) are evicted once idle.
	expire_idle: bool = False
	last_active: float = 0.0
	# Serialises turns for this session; waiters are woken in arrival order.
	lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

	@property
	def active_flow(self) -> Optional[FlowKind]:
		return self.flow.active_flow

	@property
	def current_step(self) -> Optional[int]:
		return self.flow.current_step

	@property
	def collected_params(self) -> Dict[str, Any]:
		return self.flow.collected_params

	def reset(self) -> None:
		"""Drop any active flow and the in-memory transcript."""
		self.flow = FlowState()
		self.history.clear()
