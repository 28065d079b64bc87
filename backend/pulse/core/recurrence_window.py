"""Recurrence Window — the rolling date range that gets materialized.

Invariants:
    - Window is inclusive on both ends and always start <= end
    - Month shifts clamp the day to the target month's length (Mar 31 - 1 month = Feb 28/29)

Design Decisions:
    - Calendar arithmetic on stdlib date: no timezone, the academy runs on one local zone
"""

import calendar
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta

DEFAULT_MONTHS_BACK = 2
DEFAULT_MONTHS_FORWARD = 10


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def shift_months(day: date, months: int) -> date:
    """Move `day` by a signed number of months, clamping the day of month."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def compute_window(
    today: date,
    months_back: int = DEFAULT_MONTHS_BACK,
    months_forward: int = DEFAULT_MONTHS_FORWARD,
) -> DateWindow:
    """Rolling window around `today`."""
    if months_back < 0 or months_forward < 0:
        raise ValueError("window sizes must be non-negative")
    return DateWindow(
        start=shift_months(today, -months_back),
        end=shift_months(today, months_forward),
    )


def iter_window_dates(window: DateWindow) -> Iterator[date]:
    day = window.start
    step = timedelta(days=1)
    while day <= window.end:
        yield day
        day += step
