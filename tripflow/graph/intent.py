import re
from typing import Optional

from tripflow.schemas import Budget, Intent, ParsedIntent, TravelMode


CITY_ALIASES = {
    "bombay": "Mumbai",
    "mumbai": "Mumbai",
    "mum": "Mumbai",
    "bom": "Mumbai",
    "delhi": "Delhi",
    "new delhi": "Delhi",
    "del": "Delhi",
    "bangalore": "Bangalore",
    "bengaluru": "Bangalore",
    "blr": "Bangalore",
    "hyderabad": "Hyderabad",
    "hyd": "Hyderabad",
    "chennai": "Chennai",
    "madras": "Chennai",
    "maa": "Chennai",
    "kolkata": "Kolkata",
    "calcutta": "Kolkata",
    "ccu": "Kolkata",
    "goa": "Goa",
    "pune": "Pune",
    "jaipur": "Jaipur",
}


def norm_city(x: str) -> str:
    if not x:
        return x
    k = x.strip().lower()
    return CITY_ALIASES.get(k, x.strip().title())


# ---------------------------
# Answer normalisers (shared by the merger)
# ---------------------------
def normalize_budget(text: str) -> str:
    t = text.lower()
    if "luxury" in t:
        return Budget.LUXURY.value
    if "medium" in t:
        return Budget.MEDIUM.value
    if "budget" in t:
        return Budget.BUDGET.value
    return text.strip()


def normalize_mode(text: str) -> str:
    t = text.lower()
    if "flight" in t:
        return TravelMode.FLIGHT.value
    if "train" in t:
        return TravelMode.TRAIN.value
    if "bus" in t:
        return TravelMode.BUS.value
    return text.strip()


def parse_group_size(text: str) -> int:
    m = re.match(r"\s*(\d+)", text or "")
    if not m:
        return 1
    return max(1, int(m.group(1)))


_NEW_TRIP = re.compile(r"\b(trip|plan|travel|book|from|to)\b.*\b(from|to)\b")


def looks_like_new_trip(message: str) -> bool:
    """Heuristic: does an answer actually restate a whole trip ("book from X to Y")?"""
    return bool(_NEW_TRIP.search((message or "").lower()))


_ITINERARY = re.compile(r"\b(?:make|create|plan|suggest|generate)\b.*?\b(?:trip|itinerary|plan)\b")
_TRIP_DAYS = re.compile(r"(?<!\bin )\b(\d{1,2})\s+days?\b")
_INTERESTS = re.compile(r"\b(?:see|visit|experience|explore)\s+([^\d,.]+?)(?:\s+for\b|[,.]|$)")


def itinerary_request(message: str) -> Optional[tuple[int, Optional[str]]]:
    """(days, interests) when the message asks for an N-day itinerary, else None."""
    t = (message or "").lower().strip()
    m_days = _TRIP_DAYS.search(t)
    if not (_ITINERARY.search(t) and m_days):
        return None
    days = int(m_days.group(1))
    if days < 1:
        return None
    m_int = _INTERESTS.search(t)
    return days, (m_int.group(1).strip() if m_int else None)


# ---------------------------
# Pattern based parsing (used when the LLM parser is unavailable)
# ---------------------------
_DATE_PATTERNS = [
    re.compile(r"\b\d{1,2}(?:st|nd|rd|th)?\s*(?:of\s+)?(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*(?:,?\s*\d{4})?", re.I),
    re.compile(r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\s*\d{1,2}(?:st|nd|rd|th)?(?:,?\s*\d{4})?", re.I),
    re.compile(r"\b\d{4}-\d{1,2}-\d{1,2}\b"),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b"),
    re.compile(r"\b(?:day after tomorrow|tomorrow|today|next week)\b", re.I),
]

_GROUP = re.compile(r"\b(\d+)\s*(?:people|persons?|passengers?|travell?ers?|pax|adults?|guests?)\b", re.I)
_RETURN_DATE = re.compile(r"\breturn(?:ing)?\s+(?:on\s+)?(.+)$", re.I)


def _find_date(text: str) -> Optional[str]:
    for pattern in _DATE_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0).strip()
    return None


def _detect_intent(t: str) -> Intent:
    if re.search(r"\b(cancel|start over|restart|reset)\b", t):
        return Intent.CANCEL_TRIP
    if re.search(r"\bbook\s+(?:a\s+)?hotels?\b", t) or (re.search(r"\bhotels?\s+in\b", t) and not re.search(r"\bfrom\b", t)):
        return Intent.BOOK_HOTEL
    if re.search(r"\b(book|confirm|proceed|reserve)\b", t) or t.strip() in {"yes", "yes please", "book it"}:
        return Intent.BOOK_TRIP
    if re.search(r"^\s*(hi|hello|hey)\b", t):
        return Intent.GREET
    if re.search(r"\b(tell me about|best places|what to visit|recommend|weather in|things to do)\b", t):
        return Intent.GENERAL_QUERY
    return Intent.UNKNOWN


def parse_with_patterns(user_text: str) -> ParsedIntent:
    t = (user_text or "").lower().strip()
    fields: dict = {"intent": _detect_intent(t)}

    m = re.search(r"from\s+([a-zA-Z ]+?)\s+to\s+([a-zA-Z ]+?)(?:\s+on\b|\s+at\b|\s+for\b|\s+by\b|\s+in\b|\s+with\b|\s+\d|,|$)", t)
    if m:
        fields["from"] = norm_city(m.group(1))
        fields["to"] = norm_city(m.group(2))
    else:
        m_from = re.search(r"\bfrom\s+([a-z]+)", t)
        if m_from and m_from.group(1) in CITY_ALIASES:
            fields["from"] = CITY_ALIASES[m_from.group(1)]
        m_to = re.search(r"\bto\s+([a-z]+)", t)
        if m_to and m_to.group(1) in CITY_ALIASES:
            fields["to"] = CITY_ALIASES[m_to.group(1)]

    if "to" not in fields:
        # hotel intent: "hotel in <city>"
        m_in = re.search(r"\bin\s+([a-zA-Z ]+?)(?:\s+from\b|\s+on\b|\s+for\b|,|$)", t)
        if m_in and fields["intent"] == Intent.BOOK_HOTEL:
            fields["to"] = norm_city(m_in.group(1))

    if re.search(r"\b(flight|fly|plane)\b", t):
        fields["mode"] = TravelMode.FLIGHT.value
    elif re.search(r"\b(train|railway)\b", t):
        fields["mode"] = TravelMode.TRAIN.value
    elif re.search(r"\b(bus|coach)\b", t):
        fields["mode"] = TravelMode.BUS.value
    elif re.search(r"\b(car|cab|taxi)\b", t):
        fields["mode"] = "Car"

    if re.search(r"\b(luxury|premium)\b", t):
        fields["budget"] = Budget.LUXURY.value
    elif re.search(r"\b(medium|mid)\b", t):
        fields["budget"] = Budget.MEDIUM.value
    elif re.search(r"\b(budget|cheap|economy)\b", t):
        fields["budget"] = Budget.BUDGET.value

    m_ret = _RETURN_DATE.search(t)
    if m_ret:
        return_date = _find_date(m_ret.group(1))
        if return_date:
            fields["returnDate"] = return_date
            t = t[: m_ret.start()]
    date = _find_date(t)
    if date:
        fields["date"] = date

    if re.search(r"\b(round[- ]?trip|return)\b", user_text or "", re.I):
        fields["returnTrip"] = True
    elif re.search(r"\bone[- ]?way\b", t):
        fields["returnTrip"] = False

    m_group = _GROUP.search(user_text or "")
    if m_group:
        fields["groupSize"] = int(m_group.group(1))

    return ParsedIntent.model_validate(fields)
