# booking_service.py
import logging
import time
from datetime import date
from typing import Any, Dict, List, Optional

from availability import conflicting_bookings, find_available_rooms
from dates import parse_range
from errors import InvalidTransitionError, RoomUnavailableError, ValidationError
from models import Booking, BookingStatus, PriceBreakdown, Room, RoomStatus, to_flag
from pricing import BREAKFAST_NIGHTLY_RATE, EXTRA_BED_NIGHTLY_RATE, calculate_price
from store import JsonStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CHECKED_IN, BookingStatus.CANCELLED},
    BookingStatus.CHECKED_IN: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

# room status forced when a booking enters the given state
ROOM_STATUS_ON = {
    BookingStatus.CHECKED_IN: RoomStatus.OCCUPIED,
    BookingStatus.COMPLETED: RoomStatus.CLEANING,
}

# a booking can never be placed on these, whatever the dates
UNBOOKABLE_ROOM_STATUSES = (RoomStatus.MAINTENANCE, RoomStatus.INACTIVE)

REQUIRED_FIELDS = ("customer_id", "room_id", "check_in_date", "check_out_date", "adults")

# fields that feed the price; an update touching any of them re-prices
PRICED_FIELDS = ("room_id", "check_in_date", "check_out_date", "adults", "children",
                 "extra_beds", "includes_breakfast", "discount_percent")


def validate_transition(current: BookingStatus, target: BookingStatus):
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(current.value, target.value)


def generate_booking_code() -> str:
    return "BK" + str(int(time.time() * 1000))[-8:]


class BookingService:
    """Booking workflow over a JsonStore.

    The only place availability and pricing are computed; API handlers go
    through here instead of filtering or pricing inline.
    """

    def __init__(self, store: JsonStore, extra_bed_rate=EXTRA_BED_NIGHTLY_RATE,
                 breakfast_rate=BREAKFAST_NIGHTLY_RATE):
        self.store = store
        self.extra_bed_rate = extra_bed_rate
        self.breakfast_rate = breakfast_rate

    def available_rooms(self, check_in, check_out) -> List[Room]:
        return find_available_rooms(check_in, check_out, self.store.rooms(), self.store.bookings())

    def price(self, room_type_id: int, nights: int, adults: int, children: int = 0,
              extra_beds: int = 0, includes_breakfast: bool = False,
              discount_percent=0) -> PriceBreakdown:
        return calculate_price(
            self.store.room_type(room_type_id), nights, adults, children, extra_beds,
            includes_breakfast, discount_percent,
            extra_bed_rate=self.extra_bed_rate, breakfast_rate=self.breakfast_rate,
        )

    def quote(self, check_in, check_out, adults: int, children: int = 0,
              extra_beds: int = 0, includes_breakfast: bool = False, discount_percent=0,
              room_id: Optional[int] = None,
              room_type_id: Optional[int] = None) -> PriceBreakdown:
        if room_type_id is None:
            if room_id is None:
                raise ValidationError("room_id or room_type_id is required")
            room_type_id = self.store.room(room_id).room_type_id
        ci, co = parse_range(check_in, check_out)
        return self.price(room_type_id, (co - ci).days, adults, children, extra_beds,
                          includes_breakfast, discount_percent)

    def _ensure_free(self, booking: Booking):
        others = [b for b in self.store.bookings() if b.booking_id != booking.booking_id]
        clashes = conflicting_bookings(booking.room_id, booking.check_in_date,
                                       booking.check_out_date, others)
        if clashes:
            ids = [b.booking_id for b in clashes]
            logger.warning("Room %s is booked for %s..%s by %s", booking.room_id,
                           booking.check_in_date, booking.check_out_date, ids)
            raise RoomUnavailableError(
                f"Room {booking.room_id} is not available for the selected dates",
                {"room_id": booking.room_id, "conflicting_booking_ids": ids},
            )

    def _apply_price(self, booking: Booking):
        room = self.store.room(booking.room_id)
        breakdown = self.price(
            room.room_type_id, booking.nights, booking.adults, booking.children,
            booking.extra_beds, booking.includes_breakfast, booking.discount_percent,
        )
        booking.total_amount = breakdown.total
        return breakdown

    def _ensure_bookable_room(self, room_id: int) -> Room:
        room = self.store.room(room_id)
        if room.status in UNBOOKABLE_ROOM_STATUSES:
            raise RoomUnavailableError(f"Room {room.room_id} is {room.status.value}",
                                       {"room_id": room.room_id, "status": room.status.value})
        return room

    def _ensure_references(self, booking: Booking):
        self.store.customer(booking.customer_id)
        if booking.channel_id is not None:
            self.store.get("booking_channels", booking.channel_id)

    def create_booking(self, payload: Dict[str, Any]) -> Booking:
        missing = [f for f in REQUIRED_FIELDS if payload.get(f) in (None, "")]
        if missing:
            raise ValidationError("Missing required fields", {"missing": missing})

        booking = Booking.from_dict(payload)
        booking.booking_id = None
        booking.check_in_date, booking.check_out_date = parse_range(
            booking.check_in_date, booking.check_out_date)
        booking.booking_code = booking.booking_code or generate_booking_code()
        booking.booking_date = booking.booking_date or date.today()
        booking.status = BookingStatus.PENDING
        booking.cancellation_reason = None
        booking.has_cancellation_fee = False

        # conflict check and insert must not interleave with another request
        with self.store.transaction():
            self._ensure_references(booking)
            self._ensure_bookable_room(booking.room_id)
            self._ensure_free(booking)
            self._apply_price(booking)
            saved = Booking.from_dict(self.store.insert("bookings", booking.to_dict()))

        logger.info("Created booking %s (%s) for room %s, total %s", saved.booking_id,
                    saved.booking_code, saved.room_id, saved.total_amount)
        return saved

    def update_booking(self, booking_id: int, payload: Dict[str, Any]) -> Booking:
        with self.store.transaction():
            current = self.store.booking(booking_id)
            if not ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(current.status.value, "EDITED")

            merged = current.to_dict()
            merged.update({k: v for k, v in payload.items()
                           if k not in ("booking_id", "status", "total_amount")})
            booking = Booking.from_dict(merged)
            booking.booking_id = booking_id
            booking.check_in_date, booking.check_out_date = parse_range(
                booking.check_in_date, booking.check_out_date)

            if "customer_id" in payload or "channel_id" in payload:
                self._ensure_references(booking)

            if any(k in payload for k in PRICED_FIELDS):
                if booking.room_id != current.room_id:
                    self._ensure_bookable_room(booking.room_id)
                if (booking.room_id, booking.check_in_date, booking.check_out_date) != \
                        (current.room_id, current.check_in_date, current.check_out_date):
                    self._ensure_free(booking)
                self._apply_price(booking)

            saved = Booking.from_dict(
                self.store.replace("bookings", booking_id, booking.to_dict()))

        logger.info("Updated booking %s, total %s", booking_id, saved.total_amount)
        return saved

    def change_status(self, booking_id: int, status, **extra) -> Booking:
        try:
            target = BookingStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown booking status {status!r}") from None

        with self.store.transaction():
            booking = self.store.booking(booking_id)
            validate_transition(booking.status, target)

            booking.status = target
            for name, value in extra.items():
                setattr(booking, name, value)
            saved = Booking.from_dict(
                self.store.replace("bookings", booking_id, booking.to_dict()))

            room_status = ROOM_STATUS_ON.get(target)
            if room_status is not None:
                room = self.store.get("rooms", booking.room_id)
                room["status"] = room_status.value
                self.store.replace("rooms", booking.room_id, room)

        logger.info("Booking %s moved to %s", booking_id, target.value)
        return saved

    def cancel_booking(self, booking_id: int, reason: Optional[str] = None,
                       has_cancellation_fee: bool = False) -> Booking:
        return self.change_status(booking_id, BookingStatus.CANCELLED,
                                  cancellation_reason=reason,
                                  has_cancellation_fee=to_flag(has_cancellation_fee))

    def delete_booking(self, booking_id: int):
        self.store.delete("bookings", booking_id)
        logger.info("Deleted booking %s", booking_id)
