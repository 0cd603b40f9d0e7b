"""Drive one chat message through classification, flow transition, dispatch, and reply."""

from __future__ import annotations

import logging
from typing import Optional

from models.dispatch_models import Execute
from models.intent import UNRECOGNIZED_RESPONSE, ChatIntent, Intent
from models.session_models import Message, Sender, Session
from services.flow.dispatcher import ActionDispatcher
from services.flow.session_registry import SessionNotFound, SessionRegistry
from services.flow.state_machine import FlowInvariantError, Transition, transition
from services.openai.intent_classifier import IntentClassifier
from services.openai.response_composer import ResponseComposer

WELCOME_MESSAGE = "Welcome to Airline Chat! How can I help you today?"
ERROR_MESSAGE = "I'm sorry, I encountered an error processing your request. Please try again."


class Orchestrator:
	"""Process messages for live sessions, one turn at a time per session."""

	def __init__(
		self,
		registry: SessionRegistry,
		classifier: IntentClassifier,
		dispatcher: ActionDispatcher,
		composer: ResponseComposer,
	) -> None:
		self.registry = registry
		self.classifier = classifier
		self.dispatcher = dispatcher
		self.composer = composer

	async def welcome(self, session_key: str) -> Optional[Message]:
		"""Append and return the greeting sent right after a client identifies."""
		try:
			state = self.registry.get(session_key)
		except SessionNotFound:
			logging.warning("Cannot greet unknown session %s", session_key)
			return None
		async with state.lock:
			return await self._reply(state, WELCOME_MESSAGE)

	async def handle_message(self, session_key: str, message: Message) -> Optional[Message]:
		"""Run one user turn and return the assistant message, or None if it was dropped.

		Turns for the same session are applied in arrival order. A reply for a
		session closed while the turn was in flight is dropped.
		"""
		try:
			state = self.registry.get(session_key)
		except SessionNotFound:
			logging.warning("Dropping message for unknown session %s", session_key)
			return None

		async with state.lock:
			if state.closed:
				logging.warning("Dropping message for closed session %s", session_key)
				return None
			if message.user_id != state.user_id:
				message = Message(
					content=message.content,
					sender=Sender.USER,
					user_id=state.user_id,
					id=message.id,
					timestamp=message.timestamp,
				)
			await self.registry.append(session_key, message)
			try:
				text = await self._run_turn(state, message.content)
			except FlowInvariantError:
				raise
			except Exception:
				logging.exception("Error processing message for session %s", session_key)
				text = ERROR_MESSAGE
			return await self._reply(state, text)

	async def clear_history(self, user_id: str) -> bool:
		"""Delete the durable transcript of `user_id` and reset their live sessions."""
		deleted = await self.registry.store.delete_all(user_id)
		for state in self.registry.sessions_for_user(user_id):
			async with state.lock:
				state.reset()
		return deleted

	async def _run_turn(self, state: Session, content: str) -> str:
		intent = await self.classifier.classify(content, state.flow.as_context())
		result = transition(state.flow, intent)
		if result.rejected:
			logging.warning(
				"Rejected %s continuation while %s flow is active in session %s",
				getattr(intent, "flow", None),
				state.active_flow,
				state.session_key,
			)
		# The flow is concluded before dispatch, whatever the backend answers.
		state.flow = result.state
		return await self._reply_text(result, intent, content)

	async def _reply_text(self, result: Transition, intent: Intent, content: str) -> str:
		directive = result.directive
		if isinstance(directive, Execute):
			outcome = await self.dispatcher.execute(directive)
			return await self.composer.compose_outcome(directive.kind, directive.parameters, outcome, content)
		if result.reply is not None:
			return result.reply
		if isinstance(intent, ChatIntent) or result.state.active_flow is None:
			return UNRECOGNIZED_RESPONSE
		return await self.composer.compose_flow_prompt(
			result.state.active_flow,
			result.state.current_step,
			dict(result.state.collected_params),
			content,
			suggested=getattr(intent, "response", None),
		)

	async def _reply(self, state: Session, text: str) -> Optional[Message]:
		if state.closed:
			logging.info("Dropping late reply for closed session %s", state.session_key)
			return None
		reply = Message(content=text, sender=Sender.ASSISTANT, user_id=state.user_id)
		await self.registry.append(state.session_key, reply)
		return reply
