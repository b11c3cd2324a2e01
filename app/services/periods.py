"""Month-granularity date helpers shared by overlap checks and billing.

Every interval here is closed on both ends at month granularity: a
subscription running from March to March covers exactly one month. An
end of ``None`` means the interval is unbounded (a perpetual
subscription); there is no far-future placeholder date.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from app.errors import ValidationError

MONTH_YEAR_PATTERN = re.compile(r"^(\d{2})-(\d{4})$")


def normalize_month(value: date | datetime) -> date:
    """Truncate a date or datetime to the first day of its month."""
    return date(value.year, value.month, 1)


def parse_month_year(token: str, field: str = "date") -> date:
    """Parse an ``MM-YYYY`` token into the first day of that month."""
    match = MONTH_YEAR_PATTERN.match(token.strip()) if token else None
    if not match:
        raise ValidationError(f"{field} must be in MM-YYYY format")
    month, year = int(match.group(1)), int(match.group(2))
    if month < 1 or month > 12:
        raise ValidationError(f"{field} month must be between 01 and 12")
    if year < 1:
        raise ValidationError(f"{field} year must be positive")
    return date(year, month, 1)


def format_month_year(value: date) -> str:
    return f"{value.month:02d}-{value.year:04d}"


def months_between(start: date, end: date) -> int:
    """Inclusive number of calendar months from ``start`` to ``end``.

    Two dates in the same month count as 1. Returns 0 or less when
    ``end`` falls in a month before ``start``.
    """
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def intervals_overlap(
    a_start: date,
    a_end: Optional[date],
    b_start: date,
    b_end: Optional[date],
) -> bool:
    """Whether two closed month intervals share at least one month."""
    a_start, b_start = normalize_month(a_start), normalize_month(b_start)
    if a_end is not None and normalize_month(a_end) < b_start:
        return False
    if b_end is not None and normalize_month(b_end) < a_start:
        return False
    return True


@dataclass(frozen=True)
class MonthWindow:
    """A bounded ``[start, end]`` window such as a billing period."""

    start: date
    end: date

    def __post_init__(self):
        object.__setattr__(self, "start", normalize_month(self.start))
        object.__setattr__(self, "end", normalize_month(self.end))
        if self.end < self.start:
            raise ValidationError("end date cannot be before start date")

    @classmethod
    def from_tokens(cls, start: str, end: str) -> "MonthWindow":
        return cls(parse_month_year(start, "start"), parse_month_year(end, "end"))

    @property
    def months(self) -> int:
        return months_between(self.start, self.end)

    def clip(self, start: date, end: Optional[date]) -> Optional[tuple[date, date]]:
        """Intersection of ``[start, end]`` with this window, or None."""
        overlap_start = max(normalize_month(start), self.start)
        overlap_end = self.end if end is None else min(normalize_month(end), self.end)
        if overlap_start > overlap_end:
            return None
        return overlap_start, overlap_end
