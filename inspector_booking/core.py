# inspector_booking/core.py
"""
Interval arithmetic and booking status rules.

Everything here is pure: no session, no clock. Intervals are closed-open
[start, end), so a booking ending at 12:00 and one starting at 12:00 touch
without overlapping.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, NamedTuple

from inspector_booking.schemas import BookingStatus


class Interval(NamedTuple):
    start: datetime
    end: datetime

    def expand(self, minutes: int) -> "Interval":
        delta = timedelta(minutes=minutes)
        return Interval(self.start - delta, self.end + delta)

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    return a_start < b_end and b_start < a_end


def booking_interval(booking_date: date, booking_time: time, duration_minutes: int) -> Interval:
    start = datetime.combine(booking_date, booking_time)
    return Interval(start, start + timedelta(minutes=duration_minutes))


def window_interval(on_date: date, start_time: time, end_time: time) -> Interval:
    return Interval(datetime.combine(on_date, start_time), datetime.combine(on_date, end_time))


def subtract(window: Interval, occupied: Iterable[Interval]) -> List[Interval]:
    """Free pieces of `window` left after removing every occupied interval."""
    free = [window]
    for busy in sorted(occupied):
        remaining = []
        for piece in free:
            if not piece.overlaps(busy):
                remaining.append(piece)
                continue
            if piece.start < busy.start:
                remaining.append(Interval(piece.start, busy.start))
            if busy.end < piece.end:
                remaining.append(Interval(busy.end, piece.end))
        free = remaining
    return free


def slice_slots(free: Interval, duration_minutes: int) -> List[Interval]:
    step = timedelta(minutes=duration_minutes)
    slots = []
    current = free.start
    while current + step <= free.end:
        slots.append(Interval(current, current + step))
        current += step
    return slots


def day_of_week(on_date: date) -> int:
    # stored weekdays count from Sunday = 0
    return (on_date.weekday() + 1) % 7


def _same_day_in_year(d: date, year: int) -> date:
    try:
        return d.replace(year=year)
    except ValueError:
        # 29 Feb in a non-leap year
        return d.replace(year=year, day=28)


def blackout_covers(start_date: date, end_date: date, recurring: bool, on_date: date) -> bool:
    if start_date <= on_date <= end_date:
        return True
    if not recurring or on_date < start_date:
        return False

    # Recurring blackouts repeat yearly; the previous year's copy may run past New Year
    span = end_date - start_date
    for year in (on_date.year - 1, on_date.year):
        shifted_start = _same_day_in_year(start_date, year)
        if shifted_start < start_date:
            continue
        if shifted_start <= on_date <= shifted_start + span:
            return True
    return False


ALLOWED_TRANSITIONS = {
    BookingStatus.pending: frozenset({BookingStatus.confirmed, BookingStatus.cancelled}),
    BookingStatus.confirmed: frozenset({BookingStatus.cancelled, BookingStatus.completed}),
    BookingStatus.cancelled: frozenset(),
    BookingStatus.completed: frozenset(),
}


def can_transition(current: str, new: str) -> bool:
    return BookingStatus(new) in ALLOWED_TRANSITIONS[BookingStatus(current)]
