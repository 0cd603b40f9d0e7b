"""Turn backend outcomes and flow prompts into user-facing replies."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from models.dispatch_models import DomainError, Outcome, Success, TransportError, outcome_to_dict
from models.session_models import FlowKind
from services.openai.message_inputs import build_inputs
from services.openai.prompts import composer_system_prompt, flow_prompt, outcome_prompt
from services.openai.response_parser import extract_text

FLOW_FALLBACKS = {
	FlowKind.QUERY_FLIGHT: "Let's search for flights. Could you please tell me your departure and destination airports?",
	FlowKind.BUY_TICKET: "I'll help you book a ticket. Could you please provide the flight number you'd like to book?",
	FlowKind.CHECK_IN: "Let's check you in for your flight. Could you please provide your flight number?",
}

TRANSPORT_FALLBACKS = {
	FlowKind.QUERY_FLIGHT: "I'm sorry, I encountered an error while searching for flights. Please try again.",
	FlowKind.BUY_TICKET: (
		"I couldn't get a clear answer from the airline system, so your booking may or may not have gone through. "
		"Please check your bookings or contact customer service before trying again."
	),
	FlowKind.CHECK_IN: (
		"I couldn't get a clear answer from the airline system, so your check-in may or may not have gone through. "
		"Please check your flight status or contact customer service before trying again."
	),
}

SUCCESS_FALLBACKS = {
	FlowKind.BUY_TICKET: "Your booking request was accepted by the airline system.",
	FlowKind.CHECK_IN: "Your check-in request was accepted by the airline system.",
}


def _fallback(kind: FlowKind, outcome: Outcome) -> str:
	if isinstance(outcome, TransportError):
		return TRANSPORT_FALLBACKS[kind]
	if isinstance(outcome, DomainError):
		return (
			f"The airline system could not complete your request (status {outcome.status_code}). "
			"Please check the details and try again."
		)
	if kind is FlowKind.QUERY_FLIGHT:
		count = len(outcome.payload) if isinstance(outcome, Success) else 0
		if not count:
			return "I couldn't find any flights matching your search. Would you like to try different dates or airports?"
		return f"I found {count} flight(s) matching your search. Would you like to book one of them?"
	return SUCCESS_FALLBACKS[kind]


class ResponseComposer:
	"""Ask the model for conversational wording; fall back to fixed text when it is unavailable."""

	def __init__(self, client: Optional[AsyncOpenAI], *, model: str = "gpt-4o", max_tokens: int = 300) -> None:
		self.client = client
		self.model = model
		self.max_tokens = max_tokens

	async def compose_outcome(
		self,
		kind: FlowKind,
		parameters: Dict[str, Any],
		outcome: Outcome,
		user_text: str,
	) -> str:
		"""Return the reply describing the result of a backend call."""
		prompt = outcome_prompt(kind, parameters, outcome_to_dict(outcome))
		text = await self._generate(prompt, user_text)
		return text or _fallback(kind, outcome)

	async def compose_flow_prompt(
		self,
		flow: FlowKind,
		step: Optional[int],
		collected: Dict[str, Any],
		user_text: str,
		suggested: Optional[str] = None,
	) -> str:
		"""Return the follow-up question for an active flow."""
		text = await self._generate(flow_prompt(flow, step, collected), user_text)
		return text or suggested or FLOW_FALLBACKS[flow]

	async def _generate(self, instructions: str, user_text: str) -> Optional[str]:
		if self.client is None:
			return None
		try:
			response = await self.client.responses.create(
				model=self.model,
				input=build_inputs(f"{composer_system_prompt()}\n\n{instructions}", user_text),
				max_output_tokens=self.max_tokens,
			)
		except Exception as exc:
			logging.error("Reply composition failed: %s", exc)
			return None
		text = extract_text(response).strip()
		if not text:
			logging.error("Reply composition returned no text.")
		return text or None
