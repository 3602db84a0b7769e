import random
from typing import Optional

from tripflow.agents.cabs import run_cabs_agent
from tripflow.providers.base import CabsProvider
from tripflow.schemas import CabLeg, CabQuote, TripContext, TripPlanData
from tripflow.utils.logger import get_logger

log = get_logger("tripflow.finalizer")

STATION_NAMES = {
    "flight": "Airport",
    "train": "Train Station",
    "bus": "Bus Station",
}

# fallback fare ranges (INR) when no cab quote is available
STATION_FARE_RANGE = (400, 700)
HOTEL_FARE_RANGE = (500, 800)


def _quote_cabs(cabs: CabsProvider, pickup: str, dropoff: str) -> list[CabQuote]:
    try:
        return run_cabs_agent(cabs, pickup, dropoff)["cabs"]
    except Exception as e:
        log.warning("cab quote %s -> %s failed, using fallback fare: %s", pickup, dropoff, e)
        return []


def _cab_leg(quotes: list[CabQuote], fare_range: tuple, label: str, rng) -> CabLeg:
    cheapest = quotes[0] if quotes else None
    price = cheapest.price if cheapest else rng.randint(*fare_range)
    return CabLeg(
        name=f"{cheapest.provider if cheapest else 'Uber'} {label}",
        price=price,
        details=cheapest.name if cheapest else "Standard Ride",
    )


def finalize_plan(ctx: TripContext, cabs: CabsProvider, rng: Optional[random.Random] = None) -> TripPlanData:
    """
    Price the full itinerary:
      total = (outbound + return + hotel) x group size + both cab legs
    Cab legs are best-effort: a failing or empty quote falls back to a random fare.
    """
    rng = rng or random.Random()
    transport = ctx.outbound_leg()
    if transport is None:
        raise ValueError("No transport selected")
    if ctx.hotel is None:
        raise ValueError("No hotel selected")

    group = ctx.group_size or 1
    station = STATION_NAMES[transport.kind]
    origin = ctx.origin or ""
    destination = ctx.destination or ""

    to_station = _quote_cabs(cabs, origin, f"{origin} {station}")
    to_hotel = _quote_cabs(cabs, f"{destination} {station}", destination)
    cab_to_station = _cab_leg(to_station, STATION_FARE_RANGE, f"to {station} in {origin}", rng)
    cab_to_hotel = _cab_leg(to_hotel, HOTEL_FARE_RANGE, f"from {station} in {destination}", rng)

    return_transport = ctx.return_leg() if ctx.return_trip else None

    transport_cost = transport.price * group
    return_cost = return_transport.price * group if return_transport else 0
    hotel_cost = ctx.hotel.price * group
    total = transport_cost + return_cost + hotel_cost + cab_to_station.price + cab_to_hotel.price

    return TripPlanData(
        transport=transport,
        transport_type=transport.kind,
        hotel=ctx.hotel,
        cab_to_station=cab_to_station,
        cab_to_hotel=cab_to_hotel,
        cab_options_to_station=to_station or None,
        cab_options_to_hotel=to_hotel or None,
        group_size=group,
        total=total,
        return_trip=bool(ctx.return_trip),
        return_date=ctx.return_date,
        return_transport=return_transport,
    )


def finalize_hotel_only(ctx: TripContext) -> TripPlanData:
    if ctx.hotel is None:
        raise ValueError("No hotel selected")
    group = ctx.group_size or 1
    return TripPlanData(
        transport=None,
        transport_type=None,
        hotel=ctx.hotel,
        group_size=group,
        total=ctx.hotel.price * group,
        return_trip=False,
    )
