from abc import ABC, abstractmethod

from tripflow.schemas import BookingRequest, BookingResult, CabQuote, HotelOffer


class UnknownLocationError(ValueError):
    """Free text that no location lookup could resolve."""

    def __init__(self, field: str, query: str, suggestions: list[dict]):
        super().__init__(f"Unknown {field}: {query}")
        self.field = field
        self.query = query
        self.suggestions = suggestions


class TransportProvider(ABC):
    @abstractmethod
    def search(self, origin: str, destination: str, date: str, passengers: int = 1) -> list:
        """Offers (FlightOffer / TrainOffer / BusOffer) sorted cheapest first."""
        ...

class HotelsProvider(ABC):
    @abstractmethod
    def search(self, destination: str, budget: str, check_in: str, party_size: int) -> list[HotelOffer]:
        ...

class CabsProvider(ABC):
    @abstractmethod
    def quote(self, origin: str, destination: str) -> list[CabQuote]:
        ...

class BookingProvider(ABC):
    @abstractmethod
    def book(self, request: BookingRequest) -> BookingResult:
        ...
