"""Deterministic stand-ins for transport APIs that aren't configured."""
from urllib.parse import quote_plus

from tripflow.providers.base import TransportProvider
from tripflow.schemas import BusOffer, FlightOffer, TrainOffer

AIRLINES = ["IndiGo", "Air India", "SpiceJet", "Vistara", "Akasa Air", "AirAsia"]
TRAINS = [("Rajdhani Express", "3A"), ("Shatabdi Express", "CC"), ("Duronto Express", "2A"), ("Garib Rath", "3A")]
BUS_OPERATORS = [("VRL Travels", "AC Sleeper"), ("SRS Travels", "Volvo Multi-Axle"), ("Orange Tours", "Non-AC Seater")]


def _clock(hour: int, minute: int) -> str:
    return f"{hour % 24:02d}:{minute:02d}"


class MockFlightsProvider(TransportProvider):
    def __init__(self, count: int = 8, base_price: int = 3500):
        self.count = count
        self.base_price = base_price

    def search(self, origin: str, destination: str, date: str, passengers: int = 1) -> list[FlightOffer]:
        out = []
        for i in range(self.count):
            airline = AIRLINES[i % len(AIRLINES)]
            minute = 0 if i % 2 == 0 else 30
            out.append(FlightOffer(
                id=f"flight-{i}",
                airline=airline,
                flight_number=f"{airline[:2].upper()}-{1000 + i}",
                origin=origin,
                destination=destination,
                date=date,
                departure_time=_clock(6 + i, minute),
                arrival_time=_clock(8 + i, minute),
                duration="2h 30m",
                stops=1 if i % 3 == 0 else 0,
                price=self.base_price + i * 500,
                deeplink=(
                    "https://www.makemytrip.com/flight/search"
                    f"?itinerary={quote_plus(origin)}-{quote_plus(destination)}-{date}"
                    f"&tripType=O&paxType=A-{passengers}_C-0_I-0&cabinClass=E"
                ),
            ))
        return sorted(out, key=lambda x: x.price)


class MockTrainsProvider(TransportProvider):
    def __init__(self, base_price: int = 900):
        self.base_price = base_price

    def search(self, origin: str, destination: str, date: str, passengers: int = 1) -> list[TrainOffer]:
        out = []
        for i, (name, travel_class) in enumerate(TRAINS):
            out.append(TrainOffer(
                id=f"train-{i}",
                train_name=name,
                train_number=str(12301 + i * 11),
                travel_class=travel_class,
                origin=origin,
                destination=destination,
                date=date,
                departure_time=_clock(16 + i * 2, 15),
                arrival_time=_clock(8 + i * 2, 5),
                duration=f"{16 + i}h",
                price=self.base_price + i * 350,
            ))
        return sorted(out, key=lambda x: x.price)


class MockBusesProvider(TransportProvider):
    def __init__(self, base_price: int = 650):
        self.base_price = base_price

    def search(self, origin: str, destination: str, date: str, passengers: int = 1) -> list[BusOffer]:
        out = []
        for i, (operator, bus_type) in enumerate(BUS_OPERATORS):
            out.append(BusOffer(
                id=f"bus-{i}",
                operator=operator,
                bus_type=bus_type,
                origin=origin,
                destination=destination,
                date=date,
                departure_time=_clock(20 + i, 0),
                arrival_time=_clock(8 + i, 30),
                duration=f"{12 + i}h 30m",
                price=self.base_price + i * 400,
            ))
        return sorted(out, key=lambda x: x.price)
