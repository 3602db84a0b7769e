"""
Slot-Filling Planner.

`decide_next_action` is a pure, ordered decision chain over a merged context.
`SlotFillingPlanner` carries out the chosen action against the injected services
and turns the outcome into a TurnResult.

Search dead ends (no results) clear the slot that caused them so the next turn
re-asks. Raised collaborator errors leave the merged context untouched.
"""
from enum import Enum
from typing import Optional

from tripflow.agents.booking import trigger_booking
from tripflow.agents.finalizer import finalize_hotel_only, finalize_plan
from tripflow.agents.hotels import run_hotels_agent
from tripflow.agents.transport import run_transport_agent
from tripflow.graph.slots import QUESTIONS, next_missing_slot
from tripflow.providers.base import UnknownLocationError
from tripflow.schemas import MODE_KINDS, Intent, ParsedIntent, Slot, TripContext, TurnResult, mode_kind
from tripflow.services import Services
from tripflow.utils.logger import get_logger, truncate

log = get_logger("tripflow.planner")

FALLBACK_MESSAGE = (
    "I'd be happy to help you further. Could you please provide more details about what you'd like to do?"
)

UNSUPPORTED_MODE_MESSAGE = (
    "I can currently search flights, trains and buses. "
    "How would you prefer to travel? (Flight, Train, or Bus)"
)

# offer kind -> (plural, options key, return options key)
KIND_LABELS = {
    "flight": ("flights", "availableFlights", "availableReturnFlights"),
    "train": ("trains", "availableTrains", "availableReturnTrains"),
    "bus": ("buses", "availableBuses", "availableReturnBuses"),
}


class Action(str, Enum):
    ASK_SLOT = "ask_slot"
    ASK_RETURN_DATE = "ask_return_date"
    SEARCH_HOTELS = "search_hotels"
    SEARCH_TRANSPORT = "search_transport"
    SEARCH_RETURN_TRANSPORT = "search_return_transport"
    FINALIZE = "finalize"
    FINALIZE_HOTEL_ONLY = "finalize_hotel_only"
    BOOK = "book"
    FALLBACK = "fallback"


def decide_next_action(ctx: TripContext, intent: Intent = Intent.UNKNOWN) -> Action:
    """First matching rule wins."""
    if next_missing_slot(ctx) is not None:
        return Action.ASK_SLOT

    hotel_only = ctx.hotel_only
    outbound = ctx.outbound_leg()

    if not hotel_only and ctx.return_trip and not ctx.return_date:
        return Action.ASK_RETURN_DATE

    if hotel_only and ctx.hotel is None:
        return Action.SEARCH_HOTELS

    # hotel search waits for the return leg so the trip is priced in one pass
    if (not hotel_only and outbound is not None and ctx.budget
            and ctx.hotel is None and not ctx.return_leg_pending):
        return Action.SEARCH_HOTELS

    if (not hotel_only and outbound is None
            and ctx.origin and ctx.destination and ctx.date and ctx.mode):
        return Action.SEARCH_TRANSPORT

    if (not hotel_only and ctx.return_trip and ctx.return_date
            and outbound is not None and ctx.return_leg() is None):
        return Action.SEARCH_RETURN_TRANSPORT

    if ctx.last_planned_trip is None and ctx.hotel is not None and ctx.group_size:
        if hotel_only:
            return Action.FINALIZE_HOTEL_ONLY
        if outbound is not None and (not ctx.return_trip or ctx.return_leg() is not None):
            return Action.FINALIZE

    if intent == Intent.BOOK_TRIP and ctx.last_planned_trip is not None and not ctx.booking_reference:
        return Action.BOOK

    return Action.FALLBACK


def _unknown_location_message(e: UnknownLocationError) -> str:
    if e.suggestions:
        opts = "\n".join(
            f"- {x.get('name')} ({x.get('iataCode')})" for x in e.suggestions[:5]
        )
        return (
            f"I couldn't find a matching {e.field} for “{e.query}”. Did you mean one of these?\n"
            f"{opts}\n\nReply with the correct one."
        )
    return (
        f"I couldn't find a matching {e.field} for “{e.query}”. "
        "Please tell me a nearby major city."
    )


class SlotFillingPlanner:
    def __init__(self, services: Services):
        self.services = services

    def _transport_provider(self, kind: str):
        mode = next(m for m, k in MODE_KINDS.items() if k == kind)
        return self.services.transport[mode]

    def plan(
        self,
        ctx: TripContext,
        parsed: Optional[ParsedIntent] = None,
        user_details: Optional[dict] = None,
    ) -> TurnResult:
        intent = parsed.intent if parsed else Intent.UNKNOWN
        return self.run(decide_next_action(ctx, intent), ctx, parsed, user_details)

    def run(
        self,
        action: Action,
        ctx: TripContext,
        parsed: Optional[ParsedIntent] = None,
        user_details: Optional[dict] = None,
    ) -> TurnResult:
        log.info("action=%s context=%s", action.value, truncate(ctx.to_wire(), 500))
        handler = getattr(self, f"_{action.value}")
        if action == Action.BOOK:
            return handler(ctx, user_details)
        return handler(ctx)

    # ---------------------------
    # Questions
    # ---------------------------
    def _ask_slot(self, ctx: TripContext) -> TurnResult:
        slot = next_missing_slot(ctx)
        return TurnResult.follow_up(ctx.evolve(ask=slot), QUESTIONS[slot], ask=slot)

    def _ask_return_date(self, ctx: TripContext) -> TurnResult:
        return TurnResult.follow_up(
            ctx.evolve(ask=Slot.RETURN_DATE), QUESTIONS[Slot.RETURN_DATE], ask=Slot.RETURN_DATE
        )

    def _fallback(self, ctx: TripContext) -> TurnResult:
        return TurnResult.failure(ctx, FALLBACK_MESSAGE)

    # ---------------------------
    # Searches
    # ---------------------------
    def _search_hotels(self, ctx: TripContext) -> TurnResult:
        dates = self.services.dates
        check_in = dates.format_for_api(dates.parse(ctx.date) or dates.today())
        try:
            data = run_hotels_agent(
                self.services.hotels, ctx.destination, ctx.budget, check_in, ctx.group_size or 2
            )
        except UnknownLocationError as e:
            log.warning("hotel search: %s", e)
            return TurnResult.failure(ctx, _unknown_location_message(e))
        except Exception as e:
            log.error("hotel search failed: %s", e)
            return TurnResult.failure(
                ctx, "I'm experiencing difficulty searching for hotels at the moment. Please try again in a few moments."
            )

        hotels = data["hotels"]
        if not hotels:
            log.info("no hotels in %s for budget %s", ctx.destination, ctx.budget)
            return TurnResult.failure(
                ctx.evolve(budget=None),
                f"Unfortunately, no hotels are currently available in {ctx.destination} within the "
                f"{ctx.budget} budget range. Would you like to explore a different budget category?",
            )

        options: dict = {"availableHotels": hotels}
        if ctx.hotel_only:
            message = (
                f"Excellent! I've found {len(hotels)} available hotels in {ctx.destination}. "
                "Please select your preferred accommodation."
            )
        else:
            options["transport"] = ctx.outbound_leg()
            if ctx.return_leg() is not None:
                options["returnTransport"] = ctx.return_leg()
            message = (
                "Perfect! I've found several hotels that match your budget preferences. "
                "Please select your preferred accommodation."
            )
        return TurnResult.ok(ctx, message, data=options)

    def _search_transport(self, ctx: TripContext) -> TurnResult:
        kind = mode_kind(ctx.mode)
        if kind is None:
            log.info("unsupported travel mode %r", ctx.mode)
            return TurnResult.failure(ctx.evolve(mode=None), UNSUPPORTED_MODE_MESSAGE)

        plural, key, _ = KIND_LABELS[kind]
        provider = self._transport_provider(kind)
        try:
            data = run_transport_agent(
                provider,
                ctx.origin,
                ctx.destination,
                self.services.dates.api_date(ctx.date),
                ctx.group_size or 1,
            )
        except UnknownLocationError as e:
            log.warning("%s search: %s", kind, e)
            return TurnResult.failure(ctx, _unknown_location_message(e))
        except Exception as e:
            log.error("%s search failed: %s", kind, e)
            return TurnResult.failure(
                ctx, f"I'm experiencing difficulty searching for {plural} at the moment. Please try again in a few moments."
            )

        offers = data["offers"]
        if not offers:
            log.info("no %s %s -> %s on %s", plural, ctx.origin, ctx.destination, ctx.date)
            return TurnResult.failure(
                ctx.evolve(date=None),
                f"Unfortunately, no {plural} are available from {ctx.origin} to {ctx.destination} on that date. "
                "Would you like to try a different travel date?",
            )

        options = {key: offers}
        if ctx.return_trip and not ctx.return_date:
            return TurnResult.follow_up(
                ctx.evolve(ask=Slot.RETURN_DATE),
                f"Excellent! I've found several {plural} for your outbound journey. When would you like to return?",
                ask=Slot.RETURN_DATE,
                data=options,
            )
        if ctx.budget:
            return TurnResult.ok(
                ctx,
                f"Excellent! I've found several {kind} options for you. Please select your preferred {kind}.",
                data=options,
            )
        return TurnResult.follow_up(
            ctx.evolve(ask=Slot.BUDGET),
            f"Excellent! I've found several {kind} options for you. Please select your preferred {kind}. "
            "Meanwhile, what budget range works best for your trip?",
            ask=Slot.BUDGET,
            data=options,
        )

    def _search_return_transport(self, ctx: TripContext) -> TurnResult:
        kind = ctx.outbound_leg().kind
        plural, _, key = KIND_LABELS[kind]
        provider = self._transport_provider(kind)
        try:
            data = run_transport_agent(
                provider,
                ctx.destination,
                ctx.origin,
                self.services.dates.api_date(ctx.return_date),
                ctx.group_size or 1,
            )
        except UnknownLocationError as e:
            log.warning("return %s search: %s", kind, e)
            return TurnResult.failure(ctx, _unknown_location_message(e))
        except Exception as e:
            log.error("return %s search failed: %s", kind, e)
            return TurnResult.failure(
                ctx, f"I'm experiencing difficulty searching for return {plural} at the moment. Please try again in a few moments."
            )

        offers = data["offers"]
        if not offers:
            return TurnResult.failure(
                ctx.evolve(return_date=None),
                f"Unfortunately, no return {plural} are available from {ctx.destination} to {ctx.origin} "
                f"on {ctx.return_date}. Would you like to try a different return date?",
            )
        return TurnResult.ok(
            ctx,
            f"Perfect! I've found several return {kind} options for you. Please select your preferred return {kind}.",
            data={key: offers},
        )

    # ---------------------------
    # Finalize / book
    # ---------------------------
    def _finalize(self, ctx: TripContext) -> TurnResult:
        try:
            plan = finalize_plan(ctx, self.services.cabs, self.services.rng)
        except Exception as e:
            log.error("finalize failed: %s", e)
            return TurnResult.failure(
                ctx, "I'm experiencing difficulty finalizing your trip details. Please try again in a moment."
            )
        log.info("trip finalized total=%.2f", plan.total)
        return TurnResult.ok(
            ctx.evolve(last_planned_trip=plan),
            "Perfect! Your complete itinerary is ready with real-time pricing. "
            "Please review your trip summary and proceed to secure booking.",
            data=plan,
        )

    def _finalize_hotel_only(self, ctx: TripContext) -> TurnResult:
        plan = finalize_hotel_only(ctx)
        guests = f"{plan.group_size} guest{'s' if plan.group_size > 1 else ''}"
        location = plan.hotel.location or ctx.destination
        return TurnResult.ok(
            ctx.evolve(last_planned_trip=plan),
            f"Perfect! Your hotel booking is ready.\n\n"
            f"{plan.hotel.name}\n{location}\n{guests}\nTotal: ₹{plan.total:,.0f}\n\n"
            "Ready to confirm your booking?",
            data=plan,
        )

    def _book(self, ctx: TripContext, user_details: Optional[dict] = None) -> TurnResult:
        return trigger_booking(ctx.last_planned_trip, ctx, self.services.booking, user_details)
