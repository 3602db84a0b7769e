import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from dateutil import parser as dtparser

_RELATIVE_DAYS = {
    "today": 0,
    "tonight": 0,
    "tomorrow": 1,
    "day after tomorrow": 2,
    "yesterday": -1,
    "next week": 7,
}

_IN_N_DAYS = re.compile(r"\bin\s+(\d{1,3})\s+days?\b")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EXPLICIT_YEAR = re.compile(r"\b\d{4}\b|\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b")

# a yearless date this far back is read as next year, anything closer is a past date
ROLLOVER_DAYS = 31


class DateParser:
    """
    Free-text travel dates -> calendar dates.

    `today` is injectable so "tomorrow" and the past-date check are deterministic in tests.
    """

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    def today(self) -> date:
        return self._today()

    def parse(self, text: Optional[str]) -> Optional[date]:
        if not text or not text.strip():
            return None
        t = text.strip().lower()
        today = self.today()

        # longest phrase first so "day after tomorrow" wins over "tomorrow"
        for phrase in sorted(_RELATIVE_DAYS, key=len, reverse=True):
            if re.search(rf"\b{phrase}\b", t):
                return today + timedelta(days=_RELATIVE_DAYS[phrase])

        m = _IN_N_DAYS.search(t)
        if m:
            return today + timedelta(days=int(m.group(1)))

        # dayfirst would read 2025-12-01 as 12 January
        if _ISO_DATE.match(t):
            try:
                return date.fromisoformat(t)
            except ValueError:
                return None

        try:
            d = dtparser.parse(
                text,
                fuzzy=True,
                dayfirst=True,
                default=datetime(today.year, today.month, today.day),
            ).date()
        except (ValueError, OverflowError):
            return None

        # "5 january" said in November means next January, "18 november" is just past
        if (today - d).days > ROLLOVER_DAYS and not _EXPLICIT_YEAR.search(t):
            try:
                d = d.replace(year=d.year + 1)
            except ValueError:
                # 29 February
                d = d + timedelta(days=365)
        return d

    @staticmethod
    def format_for_api(d: date) -> str:
        return d.isoformat()

    def is_past(self, text: Optional[str]) -> bool:
        d = self.parse(text)
        return d is not None and d < self.today()

    def api_date(self, text: Optional[str]) -> Optional[str]:
        """ISO date for a provider call, or the raw text when it can't be parsed."""
        d = self.parse(text)
        if d is None:
            return text.strip() if text else None
        return self.format_for_api(d)
