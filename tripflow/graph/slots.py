from typing import Optional

from tripflow.schemas import Slot, TripContext

QUESTIONS: dict[Slot, str] = {
    Slot.FROM: "Which city will you be departing from?",
    Slot.TO: "What is your destination city?",
    Slot.DATE: "When would you like to travel? (e.g., 18 August or Tomorrow)",
    Slot.BUDGET: "What budget range works best for you? (Luxury, Medium, or Budget-friendly)",
    Slot.GROUP_SIZE: "How many travelers will be joining? (e.g., 1, 2, or 5)",
    Slot.MODE: "How would you prefer to travel? (Flight, Train, or Bus)",
    Slot.RETURN_DATE: "When would you like to return? (e.g., 25 August or Next week)",
}

# context attribute holding each slot's value
SLOT_FIELDS: dict[Slot, str] = {
    Slot.FROM: "origin",
    Slot.TO: "destination",
    Slot.DATE: "date",
    Slot.MODE: "mode",
    Slot.BUDGET: "budget",
    Slot.GROUP_SIZE: "group_size",
    Slot.RETURN_DATE: "return_date",
}

HOTEL_ONLY_SLOTS: tuple[Slot, ...] = (Slot.TO, Slot.DATE, Slot.BUDGET, Slot.GROUP_SIZE)
FULL_TRIP_SLOTS: tuple[Slot, ...] = (Slot.FROM, Slot.TO, Slot.DATE, Slot.MODE, Slot.BUDGET, Slot.GROUP_SIZE)


def slot_order(ctx: TripContext) -> tuple[Slot, ...]:
    return HOTEL_ONLY_SLOTS if ctx.hotel_only else FULL_TRIP_SLOTS


def slot_value(ctx: TripContext, slot: Slot):
    return getattr(ctx, SLOT_FIELDS[slot])


def next_missing_slot(ctx: TripContext) -> Optional[Slot]:
    for slot in slot_order(ctx):
        if slot_value(ctx, slot) is None:
            return slot
    return None
