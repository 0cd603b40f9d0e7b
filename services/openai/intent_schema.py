"""Schema definition for the intent classification tool."""

from typing import Any, Dict

from models.intent import INTENT_ACTIONS
from models.session_models import FlowKind

FUNCTION_NAME = "classify_intent"

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": "Return the action the user is asking for and any parameters extracted from the message.",
    "parameters": {
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "description": "One of the supported gateway actions.",
                "enum": list(INTENT_ACTIONS),
            },
            "parameters": {
                "type": "object",
                "description": "Parameters extracted for QUERY_FLIGHT, BUY_TICKET, CHECK_IN, or START_* actions.",
            },
            "flow": {
                "type": "string",
                "description": "For CONTINUE_FLOW: the flow being continued.",
                "enum": [kind.value for kind in FlowKind],
            },
            "nextStep": {
                "type": "integer",
                "description": "For CONTINUE_FLOW: the next step number in the flow.",
            },
            "collectedParams": {
                "type": "object",
                "description": "For CONTINUE_FLOW: every parameter collected so far, including this message.",
            },
            "isFlowComplete": {
                "type": "boolean",
                "description": "For CONTINUE_FLOW: true once every required parameter is known.",
            },
            "response": {
                "type": "string",
                "description": "For CHAT: the reply to show the user. Optional otherwise.",
            },
        },
        "required": ["action"],
    },
    # Parameter objects are open-ended, which strict mode does not allow.
    "strict": False,
}
