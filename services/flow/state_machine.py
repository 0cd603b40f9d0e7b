"""Pure transition function for multi-turn slot-filling flows.

`transition` maps the current flow state and one classified intent to the
next flow state plus a dispatch directive. It never performs I/O; the
orchestrator applies the returned state and executes the directive.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from models.dispatch_models import NO_DISPATCH, Directive, Execute
from models.intent import ActionIntent, ChatIntent, ContinueFlowIntent, Intent, StartFlowIntent
from models.session_models import FlowState

MISMATCHED_FLOW_RESPONSE = (
	"Sorry, I lost track of what we were doing. Could you tell me again what you'd like to do?"
)


class FlowInvariantError(AssertionError):
	"""A transition produced a flow state with a step but no flow, or vice versa."""


@dataclass(frozen=True)
class Transition:
	"""Result of feeding one intent to the state machine.

	`reply` carries conversational text for `ChatIntent` turns (including
	rejected continuations); it is None when the reply must be composed.
	"""

	state: FlowState
	directive: Directive
	reply: Optional[str] = None
	rejected: bool = False


def check_invariant(state: FlowState) -> None:
	"""Raise FlowInvariantError unless active flow and current step agree."""
	if (state.active_flow is None) != (state.current_step is None):
		raise FlowInvariantError(
			f"activeFlow={state.active_flow!r} inconsistent with currentStep={state.current_step!r}"
		)
	if state.current_step is not None and state.current_step < 1:
		raise FlowInvariantError(f"currentStep must be positive, got {state.current_step}")


def _continue(state: FlowState, intent: ContinueFlowIntent) -> Transition:
	if state.active_flow != intent.flow:
		# The classifier tried to jump into a different flow than the one in progress.
		return Transition(state=state, directive=NO_DISPATCH, reply=MISMATCHED_FLOW_RESPONSE, rejected=True)
	params = dict(intent.collected_params)
	if intent.is_flow_complete:
		return Transition(state=FlowState(), directive=Execute(kind=intent.flow, parameters=params))
	return Transition(
		state=FlowState(active_flow=intent.flow, current_step=intent.next_step, collected_params=params),
		directive=NO_DISPATCH,
	)


def transition(state: FlowState, intent: Intent) -> Transition:
	"""Return the next flow state and directive for `intent`."""
	if isinstance(intent, ChatIntent):
		result = Transition(state=state, directive=NO_DISPATCH, reply=intent.response)
	elif isinstance(intent, ActionIntent):
		result = Transition(state=state, directive=Execute(kind=intent.kind, parameters=dict(intent.parameters)))
	elif isinstance(intent, StartFlowIntent):
		result = Transition(
			state=FlowState(active_flow=intent.flow, current_step=1, collected_params=dict(intent.parameters)),
			directive=NO_DISPATCH,
		)
	elif isinstance(intent, ContinueFlowIntent):
		result = _continue(state, intent)
	else:
		raise TypeError(f"Unhandled intent type: {type(intent).__name__}")
	check_invariant(result.state)
	return result
