"""Prompt builders for intent classification and reply composition."""

import json
from typing import Any, Dict, Mapping, Optional

from models.session_models import FlowKind

ACTION_LABELS = {
    FlowKind.QUERY_FLIGHT: "flight search",
    FlowKind.BUY_TICKET: "booking",
    FlowKind.CHECK_IN: "check-in",
}

MISSING_DETAILS = {
    FlowKind.QUERY_FLIGHT: "origin airport, destination airport, dates, and number of passengers",
    FlowKind.BUY_TICKET: "flight number, date, and passenger names",
    FlowKind.CHECK_IN: "flight number, date, and passenger name",
}


def _dump(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def classifier_system_prompt(context: Mapping[str, Any]) -> str:
    """Return the classifier instructions, extended with the active flow when there is one."""
    prompt = (
        "You are an AI assistant for an airline ticketing system. "
        "Have natural conversations with users and extract intents and parameters when they request flight services. "
        "Always answer by calling the classify_intent function.\n\n"
        "Actions:\n"
        "1. CHAT: general conversation or anything not explicitly about flights; put your reply in 'response'.\n"
        "2. QUERY_FLIGHT: search for flights when every search parameter is given.\n"
        "3. BUY_TICKET: purchase a ticket when every booking parameter is given.\n"
        "4. CHECK_IN: check in when every check-in parameter is given.\n"
        "5. START_QUERY_FLOW: the user wants to search for flights but some parameters are missing.\n"
        "6. START_BUY_FLOW: the user wants to book a flight but some details are missing.\n"
        "7. START_CHECKIN_FLOW: the user wants to check in but some details are missing.\n"
        "8. CONTINUE_FLOW: the user is answering a question inside a multi-step flow.\n\n"
        "QUERY_FLIGHT parameters: origin (airport code or city), destination (airport code or city), "
        "dateFrom and dateTo (YYYY-MM-DD or YYYY-MM-DDThh:mm:ss.0000000), passengers (number as string).\n"
        "BUY_TICKET parameters: flightNumber (e.g. \"FL3940\"), flightDate (YYYY-MM-DD or with time), "
        "passengerNames (array of names).\n"
        "CHECK_IN parameters: flightNumber, date (YYYY-MM-DD or with time), passengerName (string)."
    )
    active_flow = context.get("activeFlow")
    if active_flow:
        prompt += (
            f"\n\nThe user is currently in a {active_flow} flow, at step {context.get('currentStep')}. "
            f"Previously collected parameters: {_dump(context.get('collectedParams') or {})}.\n"
            "For CONTINUE_FLOW include: flow (the current flow type), nextStep (the next step number), "
            "collectedParams (every parameter collected so far plus the new one from this message), "
            "and isFlowComplete (true once every required parameter is known)."
        )
    return prompt


def composer_system_prompt() -> str:
    """Return the system prompt for user-facing replies."""
    return (
        "You are a helpful airline ticketing assistant. "
        "You help users find flights, book tickets, and check in for their flights. "
        "Provide concise, user-friendly responses."
    )


def outcome_prompt(kind: FlowKind, parameters: Dict[str, Any], outcome: Dict[str, Any]) -> str:
    """Describe a finished backend call so the model can explain it to the user."""
    label = ACTION_LABELS[kind]
    status = outcome.get("status")
    if status == "unknown":
        prompt = (
            f"The user asked for a {label} with these parameters: {_dump(parameters)}, "
            f"but the airline system did not give a usable answer: \"{outcome.get('error')}\". "
        )
        if kind is FlowKind.QUERY_FLIGHT:
            return prompt + "Apologise for the issue and suggest they try again or adjust their search criteria."
        return prompt + (
            "Do not say that it failed: the request may still have gone through. "
            "Suggest they check their bookings or flight status, or contact customer service, before trying again."
        )
    if kind is FlowKind.QUERY_FLIGHT and status == "success":
        return (
            f"The user searched for flights with these parameters: {_dump(parameters)}. "
            f"The search API returned: {_dump(outcome.get('data'))}. "
            "If flights were found, say how many and summarise flight numbers, departure and arrival times, and prices. "
            "If none were found, suggest alternatives politely. "
            "End by asking whether they want to book a flight or refine their search."
        )
    return (
        f"The user requested a {label} with these details: {_dump(parameters)}. "
        f"The airline API returned: {_dump(outcome)}. "
        f"Explain the {label} status in a natural, conversational way. "
        "If there was an error, explain it politely and suggest how to fix it. "
        f"If it succeeded, confirm the {label} in a friendly way."
    )


def flow_prompt(flow: FlowKind, step: Optional[int], collected: Dict[str, Any]) -> str:
    """Ask the model for a follow-up question inside an active flow."""
    label = ACTION_LABELS[flow]
    if step == 1:
        return (
            f"The user wants a {label} but has not provided all the necessary details. "
            f"Current parameters: {_dump(collected)}. "
            "Acknowledge the request and ask for the missing details "
            f"(typically {MISSING_DETAILS[flow]})."
        )
    return (
        f"You are helping the user through a {label} at step {step}. "
        f"They have provided these details so far: {_dump(collected)}. "
        "Acknowledge what they provided and ask for the next piece of information needed "
        f"(the full set is {MISSING_DETAILS[flow]})."
    )
