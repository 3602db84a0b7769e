# tripflow/llm/nlu.py
import json
import re
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from tripflow.config import DEFAULT_OPENAI_MODEL
from tripflow.schemas import ParsedIntent
from tripflow.utils.logger import get_logger, truncate

log = get_logger("tripflow.nlu")

SYSTEM_PROMPT = """
You are the language understanding step of a travel booking assistant for India.

Read ONE user message and extract the booking intent and any trip details.

You must output ONLY valid JSON (no markdown, no explanations).

Allowed intents:
- "book_trip"      (plan or book travel, confirm a booking)
- "book_hotel"     (only a hotel, no transport)
- "book_car"
- "display_trip"
- "cancel_trip"    (cancel, start over, reset)
- "greet"
- "general_query"  (travel advice, places to visit, weather, tips)
- "unknown"

Fields (use null when the message doesn't say):
- from        departure city
- to          destination city
- date        travel date exactly as the user said it (e.g. "25 december", "tomorrow")
- budget      "Luxury" | "Medium" | "Budget-friendly"
- mode        "Flight" | "Train" | "Bus"
- groupSize   number of travelers
- returnTrip  true for round trips, false for one way
- returnDate  return date exactly as the user said it

Rules:
1) Never invent values that are not in the message.
2) Keep dates as written; do not convert them.
3) "hotel in X" without an origin is "book_hotel" with to = X.

Output JSON schema:
{
  "intent": "...",
  "from": null, "to": null, "date": null, "budget": null, "mode": null,
  "groupSize": null, "returnTrip": null, "returnDate": null
}
"""

ADVISOR_PROMPT = """
You are a friendly, knowledgeable travel advisor for travelers in India.
Answer the user's question in a few short paragraphs.
Be practical: places, timings, local transport and rough costs in INR.
"""


ITINERARY_PROMPT = """
You are a professional travel planner for travelers in India.
Write a realistic day-by-day itinerary for the trip the user describes.

Include:
- morning, afternoon and evening plans for each day, with travel time between places
- a budget breakdown in INR (stay per night, food, local transport, entry fees, total)
- practical tips: local transport, dishes to try, etiquette, safety
- quick facts: best season, expected weather, what to pack

Keep it actionable and easy to scan.
"""


class NLUError(Exception):
    pass


def _safe_json_parse(txt: str) -> Dict[str, Any]:
    try:
        return json.loads(txt)
    except Exception:
        m = re.search(r"\{.*\}", txt, re.DOTALL)
        if m:
            try:
                return json.loads(m.group(0))
            except Exception:
                return {}
        return {}


def _chat_model(model: Optional[str] = None, temperature: float = 0, api_key: Optional[str] = None) -> ChatOpenAI:
    kwargs: Dict[str, Any] = {"model": model or DEFAULT_OPENAI_MODEL, "temperature": temperature}
    if api_key:
        kwargs["api_key"] = api_key
    return ChatOpenAI(**kwargs)


class LLMIntentParser:
    """
    ParsedIntent from one message, via a JSON-only chat completion.
    Raises NLUError when the reply holds no usable JSON.
    """

    def __init__(self, llm=None, model: Optional[str] = None, api_key: Optional[str] = None):
        self.llm = llm or _chat_model(model, api_key=api_key)

    def parse(self, message: str) -> ParsedIntent:
        resp = self.llm.invoke([SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=message)])
        raw = getattr(resp, "content", resp)
        data = _safe_json_parse(raw if isinstance(raw, str) else str(raw))
        if not data:
            raise NLUError(f"Unparseable NLU reply: {truncate(raw, 200)}")
        try:
            parsed = ParsedIntent.model_validate(data)
        except ValidationError as e:
            raise NLUError(str(e)) from e
        log.debug("nlu %s -> %s", truncate(message, 200), parsed.to_wire())
        return parsed


class TravelAdvisor:
    """Free-form answers for general travel questions."""

    def __init__(self, llm=None, model: Optional[str] = None, api_key: Optional[str] = None):
        self.llm = llm or _chat_model(model, temperature=0.7, api_key=api_key)

    def answer(self, message: str) -> str:
        resp = self.llm.invoke([SystemMessage(content=ADVISOR_PROMPT), HumanMessage(content=message)])
        return str(getattr(resp, "content", resp)).strip()


class ItineraryPlanner:
    """Day-by-day itinerary text for "plan a 3 days trip from X to Y" requests."""

    def __init__(self, llm=None, model: Optional[str] = None, api_key: Optional[str] = None):
        self.llm = llm or _chat_model(model, temperature=0.7, api_key=api_key)

    def plan(self, origin: str, destination: str, days: int, interests: Optional[str] = None) -> str:
        request = f"A {days}-day trip from {origin} to {destination}."
        if interests:
            request += f" Focus on: {interests}."
        resp = self.llm.invoke([SystemMessage(content=ITINERARY_PROMPT), HumanMessage(content=request)])
        return str(getattr(resp, "content", resp)).strip()
