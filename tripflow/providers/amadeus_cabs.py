from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from amadeus import Client, ResponseError, Location

from tripflow.providers.base import CabsProvider, UnknownLocationError
from tripflow.schemas import CabQuote


class AmadeusCabsProvider(CabsProvider):
    """
    Amadeus Transfers (cab-like) pricing.
    - Resolves free text -> IATA code using Airport & City Search
    - Calls Transfers Search API to return priced offers

    Works best for airport/city to airport/city routes, which is what the
    station legs of a trip plan are.
    """

    def __init__(self, client: Client):
        self.client = client
        self._cache: Dict[str, str] = {}

    @staticmethod
    def _norm(s: str) -> str:
        return (s or "").strip().lower()

    def _search_locations(self, keyword: str, max_items: int = 6) -> List[dict]:
        try:
            resp = self.client.reference_data.locations.get(
                keyword=keyword,
                subType=Location.ANY,
            )
        except ResponseError:
            return []

        out = []
        for it in (resp.data or [])[: max_items * 2]:
            code = it.get("iataCode")
            if not code:
                continue
            out.append({"name": it.get("name"), "iataCode": code, "subType": it.get("subType")})
        return out[:max_items]

    def _resolve_iata(self, text: str, field: str) -> str:
        raw = (text or "").strip()
        if not raw:
            raise UnknownLocationError(field, text, [])

        if len(raw) == 3 and raw.isalpha():
            return raw.upper()

        key = self._norm(raw)
        if key in self._cache:
            return self._cache[key]

        candidates = self._search_locations(raw)
        if not candidates and len(raw) >= 3:
            candidates = self._search_locations(raw[:3])

        if not candidates:
            raise UnknownLocationError(field, raw, [])

        wants_airport = "airport" in key

        def score(item: dict) -> int:
            st = (item.get("subType") or "").upper()
            if wants_airport:
                return 2 if st == "AIRPORT" else 1 if st == "CITY" else 0
            return 2 if st == "CITY" else 1 if st == "AIRPORT" else 0

        candidates.sort(key=score, reverse=True)
        code = candidates[0]["iataCode"].upper()
        self._cache[key] = code
        return code

    @staticmethod
    def _default_start_datetime_iso() -> str:
        """Transfers need a future date-time: tomorrow 10:00 UTC."""
        now = datetime.now(timezone.utc)
        tmr = (now + timedelta(days=1)).date()
        dt = datetime(tmr.year, tmr.month, tmr.day, 10, 0, tzinfo=timezone.utc)
        return dt.isoformat().replace("+00:00", "Z")

    @staticmethod
    def _parse_offer_price(offer: dict) -> Optional[float]:
        # offer["quotation"]["monetaryAmount"] or nested under base/total
        q = offer.get("quotation") or {}
        for path in [("monetaryAmount",), ("base", "monetaryAmount"), ("total", "monetaryAmount")]:
            cur = q
            for k in path:
                cur = cur.get(k) if isinstance(cur, dict) else None
            if cur is None:
                continue
            try:
                return float(cur)
            except (TypeError, ValueError):
                continue
        return None

    def quote(self, origin: str, destination: str) -> list[CabQuote]:
        start_code = self._resolve_iata(origin, "pickup")
        end_code = self._resolve_iata(destination, "dropoff")

        body = {
            "startLocationCode": start_code,
            "endLocationCode": end_code,
            "transferType": "PRIVATE",
            "startDateTime": self._default_start_datetime_iso(),
            "passengers": 1,
            "currency": "INR",
        }
        try:
            resp = self.client.shopping.transfer_offers.post(body)
        except ResponseError as e:
            raise RuntimeError(str(e))

        out = []
        for off in (resp.data or []):
            price = self._parse_offer_price(off)
            if price is None:
                continue
            vehicle = off.get("vehicle") or {}
            service = off.get("serviceProvider") or {}
            out.append(CabQuote(
                provider=service.get("name") or "Transfer",
                name=vehicle.get("description") or vehicle.get("code") or "Car",
                price=price,
                details=f"{origin} → {destination}",
            ))

        return sorted(out, key=lambda x: x.price)
