import pytest

from tripflow.graph.intent import (
    itinerary_request,
    looks_like_new_trip,
    norm_city,
    normalize_budget,
    normalize_mode,
    parse_group_size,
    parse_with_patterns,
)
from tripflow.schemas import Intent


@pytest.mark.parametrize("text,expected", [
    ("LUXURY please", "Luxury"),
    ("something medium", "Medium"),
    ("budget-friendly", "Budget-friendly"),
    ("  cheap-ish  ", "cheap-ish"),
])
def test_normalize_budget(text, expected):
    assert normalize_budget(text) == expected


@pytest.mark.parametrize("text,expected", [
    ("I'd like a flight", "Flight"),
    ("Train", "Train"),
    ("by bus", "Bus"),
    (" Car ", "Car"),
])
def test_normalize_mode(text, expected):
    assert normalize_mode(text) == expected


@pytest.mark.parametrize("text,expected", [
    ("2", 2),
    ("5 people", 5),
    ("just me", 1),
    ("0", 1),
    ("", 1),
])
def test_parse_group_size(text, expected):
    assert parse_group_size(text) == expected


def test_city_aliases():
    assert norm_city("bombay") == "Mumbai"
    assert norm_city(" bengaluru ") == "Bangalore"
    assert norm_city("shimla") == "Shimla"


def test_new_trip_heuristic():
    assert looks_like_new_trip("Plan a trip from Delhi to Goa")
    assert looks_like_new_trip("book from pune to delhi")
    assert not looks_like_new_trip("Mumbai")
    assert not looks_like_new_trip("2 people")


def test_full_trip_sentence():
    parsed = parse_with_patterns("Flight from Delhi to Mumbai on 25 December for 2 people")
    assert parsed.origin == "Delhi"
    assert parsed.destination == "Mumbai"
    assert parsed.mode == "Flight"
    assert parsed.date == "25 december"
    assert parsed.group_size == 2
    assert parsed.intent == Intent.UNKNOWN


def test_round_trip_sentence():
    parsed = parse_with_patterns("Round trip by train from Pune to Delhi on 5 January returning 10 January")
    assert (parsed.origin, parsed.destination) == ("Pune", "Delhi")
    assert parsed.mode == "Train"
    assert parsed.return_trip is True
    assert parsed.date == "5 january"
    assert parsed.return_date == "10 january"


def test_hotel_only_sentence():
    parsed = parse_with_patterns("Book a hotel in Goa for 3 guests")
    assert parsed.intent == Intent.BOOK_HOTEL
    assert parsed.destination == "Goa"
    assert parsed.origin is None
    assert parsed.group_size == 3


@pytest.mark.parametrize("text,intent", [
    ("cancel everything", Intent.CANCEL_TRIP),
    ("let's start over", Intent.CANCEL_TRIP),
    ("yes", Intent.BOOK_TRIP),
    ("please book it", Intent.BOOK_TRIP),
    ("hello there", Intent.GREET),
    ("what are the best places to visit in Jaipur?", Intent.GENERAL_QUERY),
    ("hmm", Intent.UNKNOWN),
])
def test_intent_detection(text, intent):
    assert parse_with_patterns(text).intent == intent


def test_budget_and_one_way():
    parsed = parse_with_patterns("one way luxury bus to goa tomorrow")
    assert parsed.budget == "Luxury"
    assert parsed.mode == "Bus"
    assert parsed.return_trip is False
    assert parsed.destination == "Goa"
    assert parsed.date == "tomorrow"


def test_unsupported_mode_is_kept_verbatim():
    assert parse_with_patterns("by car from delhi to jaipur").mode == "Car"


@pytest.mark.parametrize("text,expected", [
    ("plan a 3 days trip from Delhi to Jaipur", (3, None)),
    ("Create a 5 day itinerary for Goa, I want to see beaches", (5, "beaches")),
    ("suggest a 2 days plan to explore old forts for the weekend", (2, "old forts")),
    ("plan a trip from Delhi to Goa in 3 days", None),
    ("3 days in Goa", None),
    ("plan a trip to Goa", None),
])
def test_itinerary_request(text, expected):
    assert itinerary_request(text) == expected
