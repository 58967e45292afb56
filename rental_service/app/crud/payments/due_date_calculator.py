"""
Due date arithmetic for recurring rental fees.

Pure functions only: no session, no settings, no clock. Every caller that
needs "the next due date" goes through ``next_due_date`` so weekly and
monthly rules live in one place.

Weekday anchors follow the 0=Sunday .. 6=Saturday convention used by the
driver portal, not Python's 0=Monday ``date.weekday()``.
"""

from datetime import date, timedelta
from typing import Iterator, Optional

from dateutil.relativedelta import relativedelta

from shared.core.exceptions import InvalidInputError
from ...enum.rental_enum import FeeFrequency

MAX_SAFE_DAY_OF_MONTH = 28


def clamp_day_of_month(day: Optional[int]) -> int:
    """Days above 28 would not exist in every month, so they are pinned to 28."""
    if day is None:
        return 1
    return min(max(int(day), 1), MAX_SAFE_DAY_OF_MONTH)


def sunday_based_weekday(value: date) -> int:
    return (value.weekday() + 1) % 7


def _coerce_frequency(frequency) -> FeeFrequency:
    if isinstance(frequency, FeeFrequency):
        return frequency
    try:
        return FeeFrequency(str(frequency).upper())
    except ValueError:
        raise InvalidInputError(
            f"Frequency must be DAILY, WEEKLY or MONTHLY, got {frequency!r}")


def next_due_date(
    frequency,
    from_date: date,
    due_weekday: Optional[int] = None,
    due_day_of_month: Optional[int] = None,
) -> date:
    """
    First due date strictly after ``from_date``.

    DAILY   -> the next day.
    WEEKLY  -> next occurrence of ``due_weekday`` (defaults to the weekday of
               ``from_date``), always 1..7 days ahead, never the same day.
    MONTHLY -> ``due_day_of_month`` (clamped to 1..28, default 1) in the same
               month if still ahead, otherwise in the following month.
    """
    frequency = _coerce_frequency(frequency)

    if frequency == FeeFrequency.DAILY:
        return from_date + timedelta(days=1)

    if frequency == FeeFrequency.WEEKLY:
        current = sunday_based_weekday(from_date)
        target = current if due_weekday is None else int(due_weekday)
        if not 0 <= target <= 6:
            raise InvalidInputError(
                f"Due weekday must be 0-6 (Sunday-Saturday), got {due_weekday}")
        days_ahead = (target - current) % 7 or 7
        return from_date + timedelta(days=days_ahead)

    day = clamp_day_of_month(due_day_of_month)
    candidate = from_date.replace(day=day)
    if candidate <= from_date:
        candidate = candidate + relativedelta(months=1)
    return candidate


def due_dates_between(
    frequency,
    after: date,
    until: date,
    due_weekday: Optional[int] = None,
    due_day_of_month: Optional[int] = None,
) -> Iterator[date]:
    """Successive due dates strictly after ``after`` and on or before ``until``."""
    current = next_due_date(frequency, after, due_weekday, due_day_of_month)
    while current <= until:
        yield current
        current = next_due_date(frequency, current, due_weekday, due_day_of_month)


def horizon(
    frequency,
    today: date,
    cycles: int,
    due_weekday: Optional[int] = None,
    due_day_of_month: Optional[int] = None,
) -> date:
    """The date reached by stepping ``cycles`` due dates forward from ``today``."""
    if cycles < 1:
        raise InvalidInputError("Look-ahead must cover at least one cycle")
    current = today
    for _ in range(cycles):
        current = next_due_date(frequency, current, due_weekday, due_day_of_month)
    return current
