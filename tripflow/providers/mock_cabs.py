from urllib.parse import quote_plus

from tripflow.providers.base import CabsProvider
from tripflow.schemas import CabQuote

# provider, product, fare multiplier over the base fare
CAB_TYPES = [
    ("Rapido", "Rapido Bike", 0.4),
    ("Rapido", "Rapido Auto", 0.65),
    ("Ola", "Ola Mini", 0.85),
    ("Uber", "UberGo", 1.0),
    ("Ola", "Ola Prime", 1.15),
    ("Uber", "Uber Premier", 1.45),
]


class MockCabsProvider(CabsProvider):
    def __init__(self, base_fare: int = 450):
        self.base_fare = base_fare

    def quote(self, origin: str, destination: str) -> list[CabQuote]:
        out = []
        for provider, name, multiplier in CAB_TYPES:
            out.append(CabQuote(
                provider=provider,
                name=name,
                price=round(self.base_fare * multiplier),
                estimated_time="25 mins",
                details="12 km",
                deeplink=(
                    "https://www.makemytrip.com/cabs/"
                    f"?from={quote_plus(origin or '')}&to={quote_plus(destination or '')}"
                ),
            ))
        return sorted(out, key=lambda x: x.price)
