from typing import Optional

from tripflow.providers.base import BookingProvider
from tripflow.schemas import BookingRequest, Traveler, TripContext, TripPlanData, TurnResult
from tripflow.utils.logger import get_logger

log = get_logger("tripflow.booking")


def build_booking_request(plan: TripPlanData, ctx: TripContext, user_details: Optional[dict] = None) -> BookingRequest:
    traveler = Traveler.model_validate(user_details or {})
    return BookingRequest(
        transport_type=plan.transport_type,
        transport_id=plan.transport.id if plan.transport else None,
        return_transport_id=plan.return_transport.id if plan.return_transport else None,
        hotel_id=plan.hotel.id,
        traveler=traveler,
        group_size=plan.group_size,
        total=plan.total,
        currency=plan.hotel.currency,
        plan=plan,
        context=ctx,
    )


def _confirmation_message(plan: TripPlanData, ctx: TripContext, reference: str) -> str:
    if plan.transport is None:
        return (
            f"Your hotel booking at {plan.hotel.name} is confirmed.\n\n"
            f"Booking Reference: {reference}\n\n"
            "You'll receive a confirmation email shortly with your booking details."
        )
    return (
        f"Excellent news! Your journey from {ctx.origin or ''} to {ctx.destination or ''} "
        f"on {ctx.date or ''} has been confirmed. Your booking reference is {reference}. "
        "A confirmation email will arrive shortly."
    )


def trigger_booking(
    plan: TripPlanData,
    ctx: TripContext,
    provider: BookingProvider,
    user_details: Optional[dict] = None,
) -> TurnResult:
    request = build_booking_request(plan, ctx, user_details)
    try:
        result = provider.book(request)
    except Exception as e:
        log.error("booking failed: %s", e)
        return TurnResult.failure(
            ctx, "I'm experiencing difficulty processing your booking at the moment. Please try again shortly."
        )

    if not result.success or not result.booking_id:
        return TurnResult.failure(
            ctx,
            f"Unfortunately, we encountered an issue processing your booking: "
            f"{result.message or 'unknown error'}. Would you like to try again?",
        )

    booked = ctx.evolve(booking_reference=result.booking_id, last_planned_trip=plan, ask=None)
    return TurnResult.ok(booked, _confirmation_message(plan, ctx, result.booking_id), data=plan)
