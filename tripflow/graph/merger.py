"""
Intent Merger: folds one turn's parse (or literal answer) into the trip context.

Two modes:
  - answering: `ctx.ask` is set, the raw message answers that slot
  - free intent: parsed fields are adopted opportunistically

A past travel date short-circuits the turn with a re-ask for `date`.
Editing an input of a finalized plan drops that plan (see `invalidate_stale_plan`).
"""
from typing import Optional, Union

from tripflow.graph.intent import (
    looks_like_new_trip,
    normalize_budget,
    normalize_mode,
    parse_group_size,
)
from tripflow.graph.slots import SLOT_FIELDS
from tripflow.schemas import (
    HotelOffer,
    Intent,
    LEG_FIELDS,
    ParsedIntent,
    Slot,
    TripContext,
    TurnResult,
    mode_kind,
)
from tripflow.utils.dates import DateParser
from tripflow.utils.logger import get_logger

log = get_logger("tripflow.merger")

PAST_DATE_MESSAGE = "That date has already passed. Please provide a future date for your travel."

# inputs a finalized plan was priced on
PRICED_FIELDS = (
    "origin", "destination", "date", "return_date", "return_trip", "mode", "budget", "group_size",
)
ROUTE_FIELDS = ("origin", "destination", "date", "mode")


class SelectionError(ValueError):
    pass


def enforce_leg_invariants(ctx: TripContext) -> TripContext:
    """Drop selected legs that break the one-outbound / return-needs-outbound rules."""
    changes = {}
    selected = [kind for kind in LEG_FIELDS if getattr(ctx, kind) is not None]

    if len(selected) > 1:
        keep = mode_kind(ctx.mode)
        if keep not in selected:
            keep = selected[0]
        for kind in selected:
            if kind != keep:
                changes[kind] = None
        log.warning("multiple outbound legs selected %s, keeping %s", selected, keep)

    for kind, (outbound_field, return_field) in LEG_FIELDS.items():
        if getattr(ctx, return_field) is None:
            continue
        outbound = None if outbound_field in changes else getattr(ctx, outbound_field)
        if outbound is None or not ctx.return_trip:
            changes[return_field] = None
            log.warning("rejected %s: outbound leg missing or not a round trip", return_field)

    return ctx.evolve(**changes) if changes else ctx


def apply_selection(ctx: TripContext, offer, leg: str = "outbound") -> TripContext:
    """Record the user's pick of an offer. Any previously finalized plan goes stale."""
    stale = {"last_planned_trip": None, "booking_reference": None}

    if isinstance(offer, HotelOffer):
        return ctx.evolve(hotel=offer, **stale)

    kind = getattr(offer, "kind", None)
    if kind not in LEG_FIELDS:
        raise SelectionError(f"Unsupported offer: {offer!r}")
    outbound_field, return_field = LEG_FIELDS[kind]

    if leg == "return":
        if getattr(ctx, outbound_field) is None:
            raise SelectionError(f"Select an outbound {kind} before a return {kind}.")
        if not ctx.return_trip:
            raise SelectionError("This is not a round trip.")
        return ctx.evolve(**{return_field: offer}, **stale)

    if leg != "outbound":
        raise SelectionError(f"Unknown leg: {leg}")
    expected = mode_kind(ctx.mode)
    if expected is not None and expected != kind:
        raise SelectionError(f"A {kind} doesn't match the chosen travel mode ({ctx.mode}).")

    # a new outbound leg replaces any other outbound/return selection
    changes = {f: None for pair in LEG_FIELDS.values() for f in pair}
    changes[outbound_field] = offer
    return ctx.evolve(**changes, **stale)


def _changed(before: TripContext, after: TripContext, field: str) -> bool:
    # filling an empty slot is not a change
    old, new = getattr(before, field), getattr(after, field)
    if old is None:
        return False
    if isinstance(old, str) and isinstance(new, str):
        return old.strip().lower() != new.strip().lower()
    return new != old


def invalidate_stale_plan(before: TripContext, after: TripContext) -> TripContext:
    """
    A finalized plan is only valid for the inputs it was priced on.
    Route and date edits also drop the selections made for the old trip.
    """
    changed = [f for f in PRICED_FIELDS if _changed(before, after, f)]
    if not changed:
        return after

    changes: dict = {"last_planned_trip": None, "booking_reference": None}
    if any(f in ROUTE_FIELDS for f in changed):
        changes.update({f: None for pair in LEG_FIELDS.values() for f in pair})
    elif "return_date" in changed or "return_trip" in changed:
        changes.update({ret: None for _, ret in LEG_FIELDS.values()})
    if "destination" in changed or "date" in changed:
        changes["hotel"] = None

    log.info("trip inputs changed %s, dropping the finalized plan", changed)
    return after.evolve(**changes)


class IntentMerger:
    def __init__(self, dates: DateParser):
        self.dates = dates

    def _past_date(self, ctx: TripContext) -> TurnResult:
        reply = ctx.evolve(ask=Slot.DATE)
        return TurnResult.follow_up(reply, PAST_DATE_MESSAGE, ask=Slot.DATE)

    def merge(
        self,
        message: str,
        parsed: ParsedIntent,
        ctx: TripContext,
    ) -> tuple[TripContext, Optional[TurnResult]]:
        incoming = ctx
        ctx = enforce_leg_invariants(ctx)

        if parsed.intent == Intent.BOOK_HOTEL or "book hotel" in message.lower():
            if not ctx.is_hotel_only:
                ctx = ctx.evolve(is_hotel_only=True)

        if ctx.ask is not None:
            merged = self._merge_answer(message, parsed, ctx)
        else:
            merged = self._merge_free(parsed, ctx)

        if merged is None:
            log.info("rejected past date, re-asking date")
            return incoming, self._past_date(incoming)
        return invalidate_stale_plan(ctx, merged), None

    # ---------------------------
    # answering mode
    # ---------------------------
    def _merge_answer(self, message: str, parsed: ParsedIntent, ctx: TripContext) -> Optional[TripContext]:
        if looks_like_new_trip(message) and (parsed.origin or parsed.destination):
            log.info("answer to %s restates a trip, adopting parsed fields", ctx.ask.value)
            changes: dict = {"ask": None}
            if parsed.origin:
                changes["origin"] = parsed.origin
            if parsed.destination:
                changes["destination"] = parsed.destination
            if parsed.date:
                if self.dates.is_past(parsed.date):
                    return None
                changes["date"] = parsed.date
            if parsed.mode:
                changes["mode"] = parsed.mode
            if parsed.group_size is not None:
                changes["group_size"] = parsed.group_size
            return ctx.evolve(**changes)

        answer = message.strip()
        slot = ctx.ask
        value: Union[str, int]

        if slot in (Slot.FROM, Slot.TO, Slot.RETURN_DATE):
            value = answer
        elif slot == Slot.DATE:
            if self.dates.is_past(answer):
                return None
            value = answer
        elif slot == Slot.BUDGET:
            value = normalize_budget(answer)
        elif slot == Slot.MODE:
            value = normalize_mode(answer)
        elif slot == Slot.GROUP_SIZE:
            value = parse_group_size(answer)
        else:
            raise ValueError(f"Unhandled slot: {slot}")

        return ctx.evolve(**{SLOT_FIELDS[slot]: value, "ask": None})

    # ---------------------------
    # free intent mode
    # ---------------------------
    def _merge_free(self, parsed: ParsedIntent, ctx: TripContext) -> Optional[TripContext]:
        changes: dict = {}
        if parsed.origin and not ctx.hotel_only:
            changes["origin"] = parsed.origin
            # "from X to Y" names a whole route
            if parsed.destination:
                changes["destination"] = parsed.destination
        elif parsed.destination and not ctx.destination:
            changes["destination"] = parsed.destination
        if parsed.date:
            if self.dates.is_past(parsed.date):
                return None
            changes["date"] = parsed.date
        if parsed.budget:
            changes["budget"] = normalize_budget(parsed.budget)
        if parsed.group_size is not None:
            changes["group_size"] = max(1, parsed.group_size)
        if parsed.mode and not ctx.hotel_only:
            changes["mode"] = normalize_mode(parsed.mode)
        if parsed.return_trip is not None:
            changes["return_trip"] = parsed.return_trip
        if parsed.return_date:
            changes["return_date"] = parsed.return_date
        return ctx.evolve(**changes) if changes else ctx
