"""
time_frame.py — Free-text time expression → concrete reporting window.

Recognised (case-insensitive, first match wins):
    "this week", "last week", "<N> weeks ago",
    "this month", "last month", "last <N> months"

Anything else resolves to the current calendar month. Weeks run Sunday to
Saturday. All returned end dates are inclusive.
"""
import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from incomebot.models.report_models import TimeFrame

_WEEKS_AGO_RE = re.compile(r"(\d+)\s*weeks?\s*ago")
_LAST_N_MONTHS_RE = re.compile(r"last\s*(\d+)\s*months?")
_N_MONTHS_RE = re.compile(r"(\d+)\s*months?")


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month (leap-year aware)."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move (year, month) by ``delta`` months, carrying across year boundaries."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def parse_trend_months(text: str) -> int:
    """Number of months a trend request covers ("last 6 months", "this year", ...)."""
    lowered = text.lower()
    match = _N_MONTHS_RE.search(lowered)
    if match:
        return int(match.group(1))
    if "quarter" in lowered:
        return 3
    if "half year" in lowered:
        return 6
    if "year" in lowered:
        return 12
    return 3


class TimeFrameParser:
    """Converts time expressions relative to "today" in the business time zone."""

    def __init__(self, timezone: str = "Asia/Jakarta"):
        self._tz = ZoneInfo(timezone)

    def today(self) -> date:
        return datetime.now(self._tz).date()

    def parse(self, text: str, today: Optional[date] = None) -> TimeFrame:
        today = today or self.today()
        try:
            return self._resolve(text.lower(), today)
        except (OverflowError, ValueError):
            # Offset reaches past the calendar range (year 1..9999)
            return self._this_month(today)

    def _resolve(self, query: str, today: date) -> TimeFrame:
        if "this week" in query:
            start = week_start(today)
            return TimeFrame(start, start + timedelta(days=6), "This Week")

        if "last week" in query:
            start = week_start(today) - timedelta(days=7)
            return TimeFrame(start, start + timedelta(days=6), "Last Week")

        match = _WEEKS_AGO_RE.search(query)
        if match:
            weeks = int(match.group(1))
            start = week_start(today) - timedelta(days=7 * weeks)
            suffix = "s" if weeks > 1 else ""
            return TimeFrame(start, start + timedelta(days=6), f"{weeks} Week{suffix} Ago")

        if "this month" in query:
            return self._this_month(today)

        if "last month" in query:
            start, end = month_bounds(*shift_month(today.year, today.month, -1))
            return TimeFrame(start, end, "Last Month")

        match = _LAST_N_MONTHS_RE.search(query)
        if match:
            months = int(match.group(1))
            start, _ = month_bounds(*shift_month(today.year, today.month, -months))
            _, end = month_bounds(today.year, today.month)
            suffix = "s" if months > 1 else ""
            return TimeFrame(start, end, f"Last {months} Month{suffix}")

        # TODO: return an explicit "unparsed" marker so callers can surface typos
        return self._this_month(today)

    @staticmethod
    def _this_month(today: date) -> TimeFrame:
        start, end = month_bounds(today.year, today.month)
        return TimeFrame(start, end, "This Month")
