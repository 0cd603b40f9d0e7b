"""Description: Intent classification service using OpenAI's Responses API."""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from openai import AsyncOpenAI

from models.intent import ChatIntent, Intent, parse_intent
from services.openai.intent_schema import FUNCTION_DEFINITION, FUNCTION_NAME
from services.openai.message_inputs import build_inputs
from services.openai.prompts import classifier_system_prompt
from services.openai.response_parser import extract_usage, parse_function_call

APOLOGY_RESPONSE = (
    "I'm sorry, I'm having trouble understanding right now. "
    "Could you try again or rephrase your request?"
)


class IntentClassifier:
    """Turn a user message plus flow context into a structured intent.

    `classify` always returns a valid intent: any failure talking to the model
    or reading its answer becomes a `ChatIntent` carrying an apology.
    """

    def __init__(self, client: Optional[AsyncOpenAI], *, model: str = "gpt-4o") -> None:
        """Initialize the classifier with an OpenAI async client (None disables it)."""
        self.client = client
        self.model = model

    async def classify(self, message: str, context: Mapping[str, Any]) -> Intent:
        """Return the intent for `message` given `{activeFlow, currentStep, collectedParams}`."""
        if self.client is None:
            logging.error("Intent classification skipped: OpenAI client is not configured.")
            return ChatIntent(response=APOLOGY_RESPONSE)

        start_time = time.time()
        inputs = build_inputs(classifier_system_prompt(context), message)
        try:
            response = await self._create_response(inputs)
            payload = parse_function_call(response, tool_name=FUNCTION_NAME)
            intent = parse_intent(payload)
        except Exception as exc:
            logging.error("Intent classification failed: %s", exc)
            return ChatIntent(response=APOLOGY_RESPONSE)

        usage = extract_usage(response)
        logging.info(
            "Classified message as %s in %.2fs (tokens in=%s out=%s)",
            payload.get("action"),
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return intent

    async def _create_response(self, inputs: List[Dict[str, Any]]) -> Any:
        """Send the classification request to the OpenAI Responses API."""
        try:
            return await self.client.responses.create(
                model=self.model,
                input=inputs,
                tools=[FUNCTION_DEFINITION],
                tool_choice={"type": "function", "name": FUNCTION_NAME},
                temperature=0,
            )
        except Exception as exc:
            logging.error("Error during OpenAI Responses API call: %s", exc)
            raise

# end of IntentClassifier
