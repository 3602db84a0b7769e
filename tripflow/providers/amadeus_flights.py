from typing import Dict, List, Tuple

from amadeus import Client, ResponseError, Location

from tripflow.config import Settings
from tripflow.providers.base import TransportProvider, UnknownLocationError
from tripflow.schemas import FlightOffer


def amadeus_client(settings: Settings) -> Client:
    return Client(
        client_id=settings.amadeus_client_id,
        client_secret=settings.amadeus_client_secret,
        hostname=settings.amadeus_hostname,
    )


class AmadeusFlightsProvider(TransportProvider):
    """
    Flight offers from Amadeus.
    - Resolve origin/destination from free text using Airport & City Search
    - Then call Flight Offers Search for the whole party
    """

    def __init__(self, client: Client, max_results: int = 15):
        self.client = client
        self.max_results = max_results
        # cache: normalized text -> iata
        self._cache: Dict[str, str] = {}

    @staticmethod
    def _norm(s: str) -> str:
        return (s or "").strip().lower()

    def _search_locations(self, keyword: str, max_items: int = 6) -> List[dict]:
        """
        Returns list of candidates: [{name, iataCode, subType, countryCode, cityName}]
        """
        try:
            resp = self.client.reference_data.locations.get(
                keyword=keyword,
                subType=Location.ANY,  # AIRPORT,CITY
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
                "subType": it.get("subType"),
                "countryCode": address.get("countryCode"),
                "cityName": address.get("cityName"),
            })

        # Prefer CITY first, then AIRPORT
        def score(item: dict) -> Tuple[int, int]:
            st = (item.get("subType") or "").upper()
            return (2 if st == "CITY" else 1 if st == "AIRPORT" else 0, 0)

        out.sort(key=score, reverse=True)
        return out[:max_items]

    def resolve_iata(self, text: str, field: str) -> str:
        """
        Accepts:
          - 'DEL' (already IATA)
          - 'Delhi' / 'New Delhi' / 'Heathrow' / etc.
        """
        raw = (text or "").strip()
        if not raw:
            raise UnknownLocationError(field, text, [])

        if len(raw) == 3 and raw.isalpha():
            return raw.upper()

        key = self._norm(raw)
        if key in self._cache:
            return self._cache[key]

        # Try full keyword, then first 3 chars (Amadeus autocomplete behaves best on prefixes)
        candidates = self._search_locations(raw)
        if not candidates and len(raw) >= 3:
            candidates = self._search_locations(raw[:3])

        if not candidates:
            raise UnknownLocationError(field, raw, [])

        code = candidates[0]["iataCode"].upper()
        self._cache[key] = code
        return code

    def search(self, origin: str, destination: str, date: str, passengers: int = 1) -> list[FlightOffer]:
        o = self.resolve_iata(origin, "origin")
        d = self.resolve_iata(destination, "destination")

        try:
            resp = self.client.shopping.flight_offers_search.get(
                originLocationCode=o,
                destinationLocationCode=d,
                departureDate=date,
                adults=max(1, passengers),
                currencyCode="INR",
                max=self.max_results,
            )
        except ResponseError as e:
            raise RuntimeError(str(e))

        out = []
        for off in (resp.data or []):
            price = off.get("price", {}).get("grandTotal")
            if price is None:
                continue
            itineraries = off.get("itineraries", [])
            segments = itineraries[0].get("segments", []) if itineraries else []
            first = segments[0] if segments else {}
            last = segments[-1] if segments else {}
            carrier = first.get("carrierCode")
            number = first.get("number")

            out.append(FlightOffer(
                id=str(off.get("id") or f"{o}-{d}-{len(out)}"),
                airline=carrier,
                flight_number=f"{carrier}{number}" if carrier and number else None,
                origin=origin,
                destination=destination,
                date=date,
                departure_time=first.get("departure", {}).get("at"),
                arrival_time=last.get("arrival", {}).get("at"),
                duration=itineraries[0].get("duration") if itineraries else None,
                stops=max(0, len(segments) - 1),
                # grandTotal covers every adult; offers are priced per traveller
                price=round(float(price) / max(1, passengers), 2),
            ))

        return sorted(out, key=lambda x: x.price)
