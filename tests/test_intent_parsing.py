from __future__ import annotations

import pytest

from models.intent import (
    UNRECOGNIZED_RESPONSE,
    ActionIntent,
    ChatIntent,
    ContinueFlowIntent,
    IntentParseError,
    StartFlowIntent,
    parse_intent,
)
from models.session_models import FlowKind


def test_chat_intent_keeps_response():
    assert parse_intent({"action": "CHAT", "response": "Hi!"}) == ChatIntent(response="Hi!")


def test_single_shot_actions_map_to_flow_kinds():
    intent = parse_intent({"action": "CHECK_IN", "parameters": {"flightNumber": "FL1"}})
    assert intent == ActionIntent(kind=FlowKind.CHECK_IN, parameters={"flightNumber": "FL1"})


@pytest.mark.parametrize(
    "action, flow",
    [
        ("START_QUERY_FLOW", FlowKind.QUERY_FLIGHT),
        ("START_BUY_FLOW", FlowKind.BUY_TICKET),
        ("START_CHECKIN_FLOW", FlowKind.CHECK_IN),
    ],
)
def test_start_actions(action, flow):
    intent = parse_intent({"action": action})
    assert isinstance(intent, StartFlowIntent)
    assert intent.flow is flow
    assert intent.parameters == {}


def test_continue_flow_fields():
    intent = parse_intent(
        {
            "action": "CONTINUE_FLOW",
            "flow": "BUY_TICKET",
            "nextStep": "3",
            "collectedParams": {"flightNumber": "FL3940"},
            "isFlowComplete": False,
            "response": "And the date?",
        }
    )
    assert intent == ContinueFlowIntent(
        flow=FlowKind.BUY_TICKET,
        next_step=3,
        collected_params={"flightNumber": "FL3940"},
        is_flow_complete=False,
        response="And the date?",
    )


def test_complete_continuation_may_omit_next_step():
    intent = parse_intent({"action": "CONTINUE_FLOW", "flow": "CHECK_IN", "isFlowComplete": True})
    assert intent.is_flow_complete
    assert intent.next_step is None


def test_unknown_action_falls_back_to_chat():
    assert parse_intent({"action": "CANCEL_TICKET"}) == ChatIntent(response=UNRECOGNIZED_RESPONSE)
    assert parse_intent({}) == ChatIntent(response=UNRECOGNIZED_RESPONSE)


@pytest.mark.parametrize(
    "payload",
    [
        {"action": "CONTINUE_FLOW", "flow": "UPGRADE", "nextStep": 2},
        {"action": "CONTINUE_FLOW", "flow": "CHECK_IN"},
        {"action": "CONTINUE_FLOW", "flow": "CHECK_IN", "nextStep": 0},
        {"action": "CONTINUE_FLOW", "flow": "CHECK_IN", "nextStep": 2, "isFlowComplete": "yes"},
        {"action": "BUY_TICKET", "parameters": ["FL1"]},
        ["CHAT"],
    ],
)
def test_malformed_payloads_raise(payload):
    with pytest.raises(IntentParseError):
        parse_intent(payload)
