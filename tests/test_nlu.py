import json

import pytest

from tripflow.llm.nlu import ItineraryPlanner, LLMIntentParser, NLUError, TravelAdvisor, _safe_json_parse
from tripflow.schemas import Intent

from stubs import FakeLLM


def test_parses_json_reply():
    llm = FakeLLM(json.dumps({
        "intent": "book_trip", "from": "Delhi", "to": "Mumbai", "date": "25 december",
        "budget": None, "mode": "Flight", "groupSize": "2", "returnTrip": False, "returnDate": None,
    }))
    parsed = LLMIntentParser(llm=llm).parse("book a flight from delhi to mumbai on 25 dec for 2")
    assert parsed.intent == Intent.BOOK_TRIP
    assert (parsed.origin, parsed.destination) == ("Delhi", "Mumbai")
    assert parsed.group_size == 2
    assert parsed.return_trip is False
    assert parsed.budget is None


def test_sends_system_prompt_and_message():
    llm = FakeLLM('{"intent": "greet"}')
    LLMIntentParser(llm=llm).parse("hi")
    system, human = llm.prompts[0]
    assert "ONLY valid JSON" in system.content
    assert human.content == "hi"


def test_reply_wrapped_in_prose():
    llm = FakeLLM('Sure! Here you go:\n```json\n{"intent": "book_hotel", "to": "Goa"}\n```')
    parsed = LLMIntentParser(llm=llm).parse("hotel in goa")
    assert parsed.intent == Intent.BOOK_HOTEL
    assert parsed.destination == "Goa"


def test_null_strings_and_unknown_intents_degrade():
    llm = FakeLLM('{"intent": "teleport", "from": "null", "groupSize": "many"}')
    parsed = LLMIntentParser(llm=llm).parse("beam me up")
    assert parsed.intent == Intent.UNKNOWN
    assert parsed.origin is None
    assert parsed.group_size is None


def test_unparseable_reply_raises():
    with pytest.raises(NLUError):
        LLMIntentParser(llm=FakeLLM("I am not sure what you mean")).parse("???")


def test_safe_json_parse():
    assert _safe_json_parse('{"a": 1}') == {"a": 1}
    assert _safe_json_parse('noise {"a": 2} noise') == {"a": 2}
    assert _safe_json_parse("no json here") == {}


def test_travel_advisor_answers():
    advisor = TravelAdvisor(llm=FakeLLM("  Visit Amber Fort early in the morning.  "))
    assert advisor.answer("what to see in jaipur") == "Visit Amber Fort early in the morning."


def test_itinerary_planner_describes_the_trip():
    llm = FakeLLM("Day 1: Amber Fort.\n")
    planner = ItineraryPlanner(llm=llm)
    assert planner.plan("Delhi", "Jaipur", 3, "forts") == "Day 1: Amber Fort."
    request = llm.prompts[0][1].content
    assert "3-day trip from Delhi to Jaipur" in request
    assert "forts" in request
