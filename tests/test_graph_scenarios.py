import pytest

from tripflow.graph.graph import ITINERARY_ERROR_MESSAGE, RESET_MESSAGE, TURN_ERROR_MESSAGE, TripAssistant
from tripflow.graph.merger import PAST_DATE_MESSAGE, apply_selection
from tripflow.llm.nlu import ItineraryPlanner, LLMIntentParser, TravelAdvisor
from tripflow.schemas import Slot, TravelMode, TripContext
from tripflow.utils.dates import DateParser

from stubs import FakeLLM, StubTransport, flight


@pytest.fixture
def assistant(services):
    return TripAssistant(services)


def turn(assistant, message, ctx):
    """One turn with the context serialised the way an HTTP caller would echo it."""
    wire = ctx.to_wire() if isinstance(ctx, TripContext) else ctx
    return assistant.process_turn(message, wire)


def test_one_way_flight_to_booking(assistant, services):
    r1 = turn(assistant, "flight from Delhi to Mumbai", {})
    assert r1.ask == Slot.DATE
    assert (r1.context.origin, r1.context.destination, r1.context.mode) == ("Delhi", "Mumbai", "Flight")

    r2 = turn(assistant, "25 december", r1.context)
    assert r2.ask == Slot.BUDGET

    r3 = turn(assistant, "medium", r2.context)
    assert r3.ask == Slot.GROUP_SIZE
    assert r3.context.budget == "Medium"

    r4 = turn(assistant, "2", r3.context)
    assert r4.success is True
    assert services.transport[TravelMode.FLIGHT].calls == [
        {"origin": "Delhi", "destination": "Mumbai", "date": "2025-12-25", "passengers": 2}
    ]

    ctx = apply_selection(r4.context, r4.data["availableFlights"][0])
    r5 = turn(assistant, "looks good", ctx)
    assert r5.success is True
    assert services.hotels.calls[0]["check_in"] == "2025-12-25"

    ctx = apply_selection(r5.context, r5.data["availableHotels"][0])
    r6 = turn(assistant, "done", ctx)
    assert r6.success is True
    assert r6.data.total == 15100
    assert r6.context.last_planned_trip.total == 15100

    r7 = turn(assistant, "yes, book it", r6.context)
    assert r7.success is True
    assert r7.context.booking_reference == "TB12345678"
    assert services.booking.requests[0].transport_id == "fl-1"

    # nothing left to do
    r8 = turn(assistant, "book it again", r7.context)
    assert r8.success is False
    assert len(services.booking.requests) == 1


def test_changing_group_size_after_finalize_reprices_before_booking(assistant, services):
    ctx = TripContext(origin="Delhi", destination="Mumbai", date="25 december", mode="Flight",
                      budget="Medium", group_size=2, flight=flight(), hotel=services.hotels.hotels[0])
    r1 = turn(assistant, "done", ctx)
    assert r1.data.total == 15100

    r2 = turn(assistant, "actually we are 4 people", r1.context)
    assert r2.success is True
    assert r2.context.group_size == 4
    assert r2.data.group_size == 4
    assert r2.context.last_planned_trip.group_size == 4
    assert r2.data.total > r1.data.total

    r3 = turn(assistant, "yes, book it", r2.context)
    assert r3.context.booking_reference == "TB12345678"
    request = services.booking.requests[0]
    assert request.group_size == 4
    assert request.total == r2.data.total


def test_empty_search_clears_date_and_reasks(assistant, services):
    services.transport[TravelMode.FLIGHT] = StubTransport([])
    r1 = turn(assistant, "flight from Delhi to Mumbai on 25 december for 2 people", {"budget": "Medium"})
    assert r1.success is False
    assert r1.context.date is None

    r2 = turn(assistant, "hmm", r1.context)
    assert r2.ask == Slot.DATE

    services.transport[TravelMode.FLIGHT] = StubTransport([flight()])
    r3 = turn(assistant, "26 december", r2.context)
    assert r3.success is True
    assert r3.context.date == "26 december"


def test_round_trip_by_train(assistant, services):
    r1 = turn(assistant, "round trip by train from Pune to Delhi on 5 january for 2 people", {"budget": "Medium"})
    assert r1.ask == Slot.RETURN_DATE
    assert r1.context.return_trip is True

    r2 = turn(assistant, "10 january", r1.context)
    assert r2.success is True
    ctx = apply_selection(r2.context, r2.data["availableTrains"][0])

    r3 = turn(assistant, "ok", ctx)
    call = services.transport[TravelMode.TRAIN].calls[-1]
    assert (call["origin"], call["destination"], call["date"]) == ("Delhi", "Pune", "2026-01-10")
    ctx = apply_selection(r3.context, r3.data["availableReturnTrains"][0], leg="return")

    r4 = turn(assistant, "ok", ctx)
    assert "availableHotels" in r4.data
    ctx = apply_selection(r4.context, r4.data["availableHotels"][0])

    r5 = turn(assistant, "ok", ctx)
    plan = r5.data
    assert plan.transport_type == "train"
    assert plan.return_transport is not None
    assert plan.total == 1200 * 2 + 1200 * 2 + 2000 * 2 + 500 + 600


def test_hotel_only_flow(assistant, services):
    r1 = turn(assistant, "book a hotel in Goa", {})
    assert r1.context.is_hotel_only is True
    assert r1.ask == Slot.DATE

    r2 = turn(assistant, "tomorrow", r1.context)
    assert r2.ask == Slot.BUDGET
    r3 = turn(assistant, "luxury", r2.context)
    assert r3.ask == Slot.GROUP_SIZE
    r4 = turn(assistant, "3", r3.context)
    assert "availableHotels" in r4.data
    assert services.hotels.calls[0]["party_size"] == 3

    ctx = apply_selection(r4.context, r4.data["availableHotels"][0])
    r5 = turn(assistant, "great", ctx)
    assert r5.data.transport is None
    assert r5.data.total == 6000

    r6 = turn(assistant, "confirm", r5.context)
    assert r6.context.booking_reference


def test_past_date_short_circuits(assistant, services):
    r = turn(assistant, "flight from Delhi to Mumbai on 10 january 2025", {})
    assert r.message == PAST_DATE_MESSAGE
    assert r.ask == Slot.DATE
    assert r.context.origin is None
    assert services.transport[TravelMode.FLIGHT].calls == []


def test_unsupported_mode_is_reasked(assistant):
    r1 = turn(assistant, "by car from delhi to jaipur on 25 december for 2 people", {"budget": "Medium"})
    assert r1.success is False
    assert r1.context.mode is None

    r2 = turn(assistant, "anything", r1.context)
    assert r2.ask == Slot.MODE

    r3 = turn(assistant, "train", r2.context)
    assert "availableTrains" in r3.data


def test_cancel_resets_context(assistant):
    ctx = TripContext(origin="Delhi", destination="Mumbai", ask=Slot.DATE)
    r = turn(assistant, "cancel, start over", ctx)
    assert r.message == RESET_MESSAGE
    assert r.context == TripContext()


def test_general_query_goes_to_advisor(assistant, services):
    services.advisor = TravelAdvisor(llm=FakeLLM("Amber Fort at sunrise."))
    r = turn(assistant, "what are the best places to visit in Jaipur?", {})
    assert r.success is True
    assert r.message == "Amber Fort at sunrise."
    assert r.context == TripContext()


def test_general_query_without_advisor_continues_slot_filling(assistant):
    r = turn(assistant, "what are the best places to visit in Jaipur?", {})
    assert r.ask == Slot.FROM


def test_advisor_failure_apologises(assistant, services):
    services.advisor = TravelAdvisor(llm=FakeLLM(error=RuntimeError("rate limited")))
    r = turn(assistant, "recommend things to do in Goa", {})
    assert r.success is False
    assert "rephrase" in r.message


def test_itinerary_request_is_planned_by_the_llm(assistant, services):
    llm = FakeLLM("Day 1: Amber Fort. Day 2: Hawa Mahal. Day 3: Nahargarh.")
    services.itinerary = ItineraryPlanner(llm=llm)
    r = turn(assistant, "plan a 3 days trip from Delhi to Jaipur", {})
    assert r.success is True
    assert r.message.startswith("Day 1: Amber Fort.")
    assert "Ready to book?" in r.message
    assert (r.context.origin, r.context.destination, r.context.trip_duration) == ("Delhi", "Jaipur", 3)
    assert r.context.to_wire()["tripDuration"] == 3
    assert not services.transport[TravelMode.FLIGHT].calls


def test_itinerary_uses_the_route_already_in_context(assistant, services):
    llm = FakeLLM("Day 1: Baga beach.")
    services.itinerary = ItineraryPlanner(llm=llm)
    r = turn(assistant, "create a 2 day itinerary for us", {"from": "Pune", "to": "Goa"})
    assert r.success is True
    assert r.context.trip_duration == 2
    assert "2-day trip from Pune to Goa" in llm.prompts[0][1].content


def test_itinerary_failure_apologises(assistant, services):
    services.itinerary = ItineraryPlanner(llm=FakeLLM(error=RuntimeError("timeout")))
    ctx = TripContext(origin="Delhi", destination="Jaipur")
    r = turn(assistant, "plan a 3 days trip", ctx)
    assert r.success is False
    assert r.message == ITINERARY_ERROR_MESSAGE
    assert r.context == ctx


def test_itinerary_without_llm_continues_slot_filling(assistant):
    r = turn(assistant, "plan a 3 days trip from Delhi to Jaipur", {})
    assert r.context.trip_duration is None
    assert (r.context.origin, r.context.destination) == ("Delhi", "Jaipur")
    assert r.ask == Slot.DATE


def test_llm_parse_is_used_when_configured(assistant, services):
    services.nlu = LLMIntentParser(llm=FakeLLM('{"intent": "book_trip", "from": "Chennai", "to": "Kolkata"}'))
    r = turn(assistant, "chennai to kolkata please", {})
    assert (r.context.origin, r.context.destination) == ("Chennai", "Kolkata")
    assert r.ask == Slot.DATE


def test_falls_back_to_patterns_when_nlu_fails(assistant, services):
    services.nlu = LLMIntentParser(llm=FakeLLM(error=TimeoutError("openai timeout")))
    out = assistant.invoke("flight from Delhi to Mumbai", {})
    assert out["result"].context.origin == "Delhi"
    nodes = [t["node"] for t in out["trace"]]
    assert nodes[:2] == ["nlu_error", "pattern_parse"]
    assert "ask_slot" in nodes


def test_unexpected_error_returns_incoming_context(services):
    class BrokenDates(DateParser):
        def is_past(self, text):
            raise RuntimeError("clock skew")

    services.dates = BrokenDates()
    ctx = TripContext(origin="Delhi", ask=Slot.DATE)
    r = TripAssistant(services).process_turn("tomorrow", ctx)
    assert r.success is False
    assert r.message == TURN_ERROR_MESSAGE
    assert r.context == ctx


def test_empty_message_is_rejected(assistant):
    with pytest.raises(ValueError):
        assistant.process_turn("   ", {})
