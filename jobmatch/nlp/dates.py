# jobmatch/nlp/dates.py
"""
Date-range parsing for work history.

Everything here is pure: text in, typed month intervals out. Months are
counted on an absolute scale (year * 12 + month - 1) and intervals are
half-open [start, end).

Endpoint rules:
  * "Mar 2019", "03/2019" and "present" are month-precise and inclusive,
    so as an end they cover that whole month (end = month + 1).
  * A bare year starts in January of that year; as an end it means
    "up to the start of that year", so 2015 - 2017 is 24 months.
"""
import re
from dataclasses import dataclass
from datetime import date

MAX_SPAN_MONTHS = 50 * 12
MIN_YEAR = 1950

MONTHS: dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}
PRESENT_WORDS = frozenset({"present", "current", "now"})

# longest names first so "september" wins over "sep"
_MONTH_ALT = "|".join(sorted(MONTHS, key=len, reverse=True))
_ENDPOINT = rf"(?:(?:{_MONTH_ALT})\.?\s+\d{{4}}|\d{{1,2}}/\d{{4}}|\d{{4}})"
_END = rf"(?:{_ENDPOINT}|present|current|now)"
_SPAN_PAT = re.compile(
    rf"(?<![\w/])({_ENDPOINT})\s*(?:-|–|—|to|until)\s*({_END})(?![\w/])",
    re.I,
)
_MONTH_YEAR_PAT = re.compile(rf"^({_MONTH_ALT})\.?\s+(\d{{4}})$", re.I)
_NUMERIC_PAT = re.compile(r"^(\d{1,2})/(\d{4})$")
_YEAR_PAT = re.compile(r"^(\d{4})$")


@dataclass(frozen=True)
class MonthInterval:
    start: int  # absolute month, inclusive
    end: int    # absolute month, exclusive

    @property
    def months(self) -> int:
        return self.end - self.start


def absolute_month(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def _valid_year(y: int, today: date) -> bool:
    return MIN_YEAR <= y <= today.year + 1


def parse_endpoint(token: str, *, is_end: bool, today: date) -> int | None:
    """Absolute month for one side of a span, or None when it cannot be read."""
    t = token.strip().lower()
    if t in PRESENT_WORDS:
        if not is_end:
            return None
        return absolute_month(today.year, today.month) + 1

    m = _MONTH_YEAR_PAT.match(t)
    if m:
        y = int(m.group(2))
        if not _valid_year(y, today):
            return None
        return absolute_month(y, MONTHS[m.group(1)]) + (1 if is_end else 0)

    m = _NUMERIC_PAT.match(t)
    if m:
        mon, y = int(m.group(1)), int(m.group(2))
        if not (1 <= mon <= 12) or not _valid_year(y, today):
            return None
        return absolute_month(y, mon) + (1 if is_end else 0)

    m = _YEAR_PAT.match(t)
    if m:
        y = int(m.group(1))
        if not _valid_year(y, today):
            return None
        return absolute_month(y, 1)

    return None


def find_intervals(text: str, today: date | None = None) -> list[MonthInterval]:
    """Every well-formed "<start> - <end>" span in `text`, in text order."""
    today = today or date.today()
    out: list[MonthInterval] = []
    for m in _SPAN_PAT.finditer(text or ""):
        start = parse_endpoint(m.group(1), is_end=False, today=today)
        end = parse_endpoint(m.group(2), is_end=True, today=today)
        if start is None or end is None:
            continue
        if end <= start or end - start > MAX_SPAN_MONTHS:
            continue
        out.append(MonthInterval(start, end))
    return out


def merge_intervals(intervals: list[MonthInterval]) -> list[MonthInterval]:
    """Sort by start and fold overlapping or touching spans together."""
    merged: list[MonthInterval] = []
    for iv in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and iv.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = MonthInterval(last.start, max(last.end, iv.end))
        else:
            merged.append(iv)
    return merged


def total_months(intervals: list[MonthInterval]) -> int:
    return sum(iv.months for iv in merge_intervals(intervals))


def years_from_date_ranges(text: str, today: date | None = None) -> float:
    return total_months(find_intervals(text, today)) / 12.0
