import random
from dataclasses import dataclass, field
from typing import Dict, Optional

from tripflow.config import Settings
from tripflow.providers.base import BookingProvider, CabsProvider, HotelsProvider, TransportProvider
from tripflow.schemas import TravelMode
from tripflow.utils.dates import DateParser
from tripflow.utils.logger import get_logger

log = get_logger("tripflow.services")


@dataclass
class Services:
    """Everything a turn talks to. Built once per process, or per test."""

    transport: Dict[TravelMode, TransportProvider]
    hotels: HotelsProvider
    cabs: CabsProvider
    booking: BookingProvider
    dates: DateParser = field(default_factory=DateParser)
    nlu: Optional[object] = None
    advisor: Optional[object] = None
    itinerary: Optional[object] = None
    rng: random.Random = field(default_factory=random.Random)


def build_services(settings: Optional[Settings] = None) -> Services:
    """
    Real adapters where credentials are configured, mocks elsewhere.
    Amadeus has no train or bus search, so those modes always use the mocks.
    """
    from tripflow.providers.mock_cabs import MockCabsProvider
    from tripflow.providers.mock_hotels import MockHotelsProvider
    from tripflow.providers.mock_transport import MockBusesProvider, MockFlightsProvider, MockTrainsProvider

    settings = settings or Settings.from_env()

    flights: TransportProvider
    if settings.amadeus_enabled:
        from tripflow.providers.amadeus_cabs import AmadeusCabsProvider
        from tripflow.providers.amadeus_flights import AmadeusFlightsProvider, amadeus_client
        from tripflow.providers.amadeus_hotels import AmadeusHotelsProvider

        client = amadeus_client(settings)
        flights = AmadeusFlightsProvider(client)
        hotels: HotelsProvider = AmadeusHotelsProvider(client)
        cabs: CabsProvider = AmadeusCabsProvider(client)
        log.info("using Amadeus flights/hotels/transfers (%s)", settings.amadeus_hostname)
    else:
        flights = MockFlightsProvider()
        hotels = MockHotelsProvider()
        cabs = MockCabsProvider()
        log.info("Amadeus not configured, using mock providers")

    booking: BookingProvider
    if settings.booking_api_url:
        from tripflow.providers.booking import HttpBookingProvider

        booking = HttpBookingProvider(settings.booking_api_url, timeout=settings.booking_timeout)
    else:
        from tripflow.db import SessionLocal
        from tripflow.providers.booking import SqlBookingProvider

        booking = SqlBookingProvider(SessionLocal)

    nlu = advisor = itinerary = None
    if settings.llm_enabled:
        from tripflow.llm.nlu import ItineraryPlanner, LLMIntentParser, TravelAdvisor

        llm_args = {"model": settings.openai_model, "api_key": settings.openai_api_key}
        nlu = LLMIntentParser(**llm_args)
        advisor = TravelAdvisor(**llm_args)
        itinerary = ItineraryPlanner(**llm_args)
    else:
        log.info("OPENAI_API_KEY not set, using pattern-based parsing")

    return Services(
        transport={
            TravelMode.FLIGHT: flights,
            TravelMode.TRAIN: MockTrainsProvider(),
            TravelMode.BUS: MockBusesProvider(),
        },
        hotels=hotels,
        cabs=cabs,
        booking=booking,
        nlu=nlu,
        advisor=advisor,
        itinerary=itinerary,
    )
