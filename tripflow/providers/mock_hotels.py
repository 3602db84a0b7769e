from urllib.parse import quote_plus

from tripflow.providers.base import HotelsProvider
from tripflow.schemas import Budget, HotelOffer

HOTEL_NAMES = ["Taj Hotel", "Oberoi Grand", "ITC Maratha", "Hyatt Regency", "JW Marriott", "Radisson Blu", "Lemon Tree", "Treebo"]

BASE_PRICES = {
    Budget.LUXURY.value: 8000,
    Budget.MEDIUM.value: 3500,
    Budget.BUDGET.value: 1500,
}


class MockHotelsProvider(HotelsProvider):
    def __init__(self, count: int = 8):
        self.count = count

    def search(self, destination: str, budget: str, check_in: str, party_size: int) -> list[HotelOffer]:
        tier = budget if budget in BASE_PRICES else Budget.MEDIUM.value
        base = BASE_PRICES[tier]
        out = []
        for i in range(min(self.count, len(HOTEL_NAMES))):
            out.append(HotelOffer(
                id=f"hotel-{i}",
                name=f"{HOTEL_NAMES[i]} {destination}",
                price=base + i * 200,
                rating=round(4.0 + (i % 10) / 10, 1),
                location=destination,
                address=f"{destination}, India",
                amenities=["WiFi", "AC", "Room Service"],
                category=tier,
                deeplink=(
                    "https://www.makemytrip.com/hotels/hotel-listing/"
                    f"?city={quote_plus(destination)}&checkin={check_in}&roomStayQualifier={party_size}e0e"
                ),
            ))
        return sorted(out, key=lambda x: x.price)
