from datetime import date, timedelta
from typing import Dict, List, Optional

from amadeus import Client, ResponseError, Location

from tripflow.providers.base import HotelsProvider, UnknownLocationError
from tripflow.schemas import Budget, HotelOffer

# nightly price band (INR) per budget tier
BUDGET_RANGES: Dict[str, tuple] = {
    Budget.BUDGET.value: (800, 2000),
    Budget.MEDIUM.value: (2000, 5000),
    Budget.LUXURY.value: (5000, 15000),
}


def price_range(budget: Optional[str]) -> tuple:
    # free-text tiers are searched as Medium
    return BUDGET_RANGES.get(budget or "", BUDGET_RANGES[Budget.MEDIUM.value])


class AmadeusHotelsProvider(HotelsProvider):
    """
    - Resolve the destination text -> IATA city code via Airport & City Search
    - Get hotelIds by cityCode
    - Fetch one-night offers by hotelIds + check-in date, keep the ones in the budget band
    """

    def __init__(self, client: Client, max_hotels: int = 15):
        self.client = client
        self.max_hotels = max_hotels
        self._city_cache: Dict[str, str] = {}

    @staticmethod
    def _norm(s: str) -> str:
        return (s or "").strip().lower()

    def _search_cities(self, keyword: str, max_items: int = 6) -> List[dict]:
        try:
            resp = self.client.reference_data.locations.get(
                keyword=keyword,
                subType=Location.CITY,  # only city codes
            )
        except ResponseError:
            return []

        out = []
        for it in (resp.data or [])[: max_items * 2]:
            code = it.get("iataCode")
            if not code:
                continue
            address = it.get("address") or {}
            out.append({
                "name": it.get("name"),
                "iataCode": code,
                "countryCode": address.get("countryCode"),
                "cityName": address.get("cityName"),
            })
        return out[:max_items]

    def _resolve_city_code(self, city_text: str) -> str:
        raw = (city_text or "").strip()
        if not raw:
            raise UnknownLocationError("city", city_text, [])

        if len(raw) == 3 and raw.isalpha():
            return raw.upper()

        key = self._norm(raw)
        if key in self._city_cache:
            return self._city_cache[key]

        candidates = self._search_cities(raw)
        if not candidates and len(raw) >= 3:
            candidates = self._search_cities(raw[:3])

        if not candidates:
            raise UnknownLocationError("city", raw, [])

        code = candidates[0]["iataCode"].upper()
        self._city_cache[key] = code
        return code

    def _get_hotel_ids_by_city(self, city_code: str) -> List[str]:
        try:
            resp = self.client.reference_data.locations.hotels.by_city.get(cityCode=city_code)
        except ResponseError as e:
            raise RuntimeError(str(e))

        ids = [h.get("hotelId") for h in (resp.data or []) if h.get("hotelId")]
        return ids[: self.max_hotels]

    def search(self, destination: str, budget: str, check_in: str, party_size: int) -> list[HotelOffer]:
        city_code = self._resolve_city_code(destination)

        hotel_ids = self._get_hotel_ids_by_city(city_code)
        if not hotel_ids:
            return []

        check_out = (date.fromisoformat(check_in) + timedelta(days=1)).isoformat()
        try:
            offers = self.client.shopping.hotel_offers_search.get(
                hotelIds=hotel_ids,
                adults=str(max(1, party_size)),
                checkInDate=check_in,
                checkOutDate=check_out,
                currency="INR",
            )
        except ResponseError as e:
            raise RuntimeError(str(e))

        low, high = price_range(budget)
        out = []
        for item in (offers.data or []):
            hotel_info = item.get("hotel", {}) or {}
            hotel_id = hotel_info.get("hotelId") or item.get("hotelId")

            cheapest_total = None
            cheapest_offer_id = None
            for off in (item.get("offers") or []):
                total = off.get("price", {}).get("total")
                if total is None:
                    continue
                try:
                    total_f = float(total)
                except (TypeError, ValueError):
                    continue
                if cheapest_total is None or total_f < cheapest_total:
                    cheapest_total = total_f
                    cheapest_offer_id = off.get("id")

            if cheapest_total is None or not (low <= cheapest_total <= high):
                continue

            rating = hotel_info.get("rating") or hotel_info.get("hotelRating")
            out.append(HotelOffer(
                id=str(cheapest_offer_id or hotel_id),
                name=hotel_info.get("name") or "Unknown",
                price=cheapest_total,
                rating=float(rating) if rating else None,
                location=hotel_info.get("cityCode") or city_code,
                category=budget,
            ))

        return sorted(out, key=lambda x: x.price)
