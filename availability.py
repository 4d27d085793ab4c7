# availability.py
"""Which rooms can be booked for a stay window.

A booking holds its room for the half-open interval
[check_in_date, check_out_date), so a guest leaving on the 5th does not
block a guest arriving on the 5th.
"""
from datetime import date
from typing import Iterable, List

from dates import parse_date, parse_range
from models import Booking, BookingStatus, Room, RoomStatus

INACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


def is_active(booking: Booking) -> bool:
    return booking.status not in INACTIVE_BOOKING_STATUSES


def overlaps(start: date, end: date, other_start: date, other_end: date) -> bool:
    return start < other_end and end > other_start


def conflicting_bookings(room_id, check_in, check_out,
                         bookings: Iterable[Booking]) -> List[Booking]:
    ci, co = parse_range(check_in, check_out)
    return [
        b for b in bookings
        if b.room_id == room_id and is_active(b)
        and overlaps(ci, co, parse_date(b.check_in_date), parse_date(b.check_out_date))
    ]


def find_available_rooms(check_in, check_out, rooms: Iterable[Room],
                         bookings: Iterable[Booking]) -> List[Room]:
    """Rooms free for [check_in, check_out), in catalog order.

    Only rooms whose status is AVAILABLE are candidates; any other status
    excludes the room whatever the dates. Raises InvalidRangeError when
    check_out is not after check_in and DateParseError on bad dates.
    """
    ci, co = parse_range(check_in, check_out)

    taken = set()
    for b in bookings:
        if not is_active(b) or b.room_id in taken:
            continue
        if overlaps(ci, co, parse_date(b.check_in_date), parse_date(b.check_out_date)):
            taken.add(b.room_id)

    return [r for r in rooms
            if r.status == RoomStatus.AVAILABLE and r.room_id not in taken]
