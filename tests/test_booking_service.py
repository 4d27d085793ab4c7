import threading
import time
from decimal import Decimal

import pytest

from booking_service import BookingService, generate_booking_code, validate_transition
from errors import (InvalidRangeError, InvalidStayError, InvalidTransitionError, NotFoundError,
                    RoomUnavailableError, ValidationError)
from models import BookingStatus, RoomStatus


def new_booking(**overrides):
    data = {
        "customer_id": 1,
        "room_id": 1,
        "check_in_date": "2024-06-10",
        "check_out_date": "2024-06-13",
        "adults": 3,
    }
    data.update(overrides)
    return data


def test_available_rooms_uses_store(service):
    # room 1 booked 06-01..06-05, 102 cleaning, 202 in maintenance
    assert [r.room_number for r in service.available_rooms("2024-06-03", "2024-06-04")] == ["201"]
    assert [r.room_number for r in service.available_rooms("2024-06-05", "2024-06-08")] == [
        "101", "201"]


def test_quote_by_room(service):
    p = service.quote("2024-06-10", "2024-06-13", adults=3, discount_percent=10, room_id=1)
    assert p.subtotal == 3_600_000
    assert p.total == 3_240_000


def test_quote_needs_a_room_or_type(service):
    with pytest.raises(ValidationError):
        service.quote("2024-06-10", "2024-06-13", adults=1)


def test_quote_rejects_bad_range(service):
    with pytest.raises(InvalidRangeError):
        service.quote("2024-06-10", "2024-06-10", adults=1, room_type_id=1)


def test_configured_rates_are_used(store):
    service = BookingService(store, extra_bed_rate=Decimal("1000"), breakfast_rate=Decimal("10"))
    p = service.quote("2024-06-10", "2024-06-11", adults=1, extra_beds=2,
                      includes_breakfast=True, room_type_id=1)
    assert p.extra_bed_fee == 2000
    assert p.breakfast_fee == 10


def test_create_booking_prices_and_persists(service):
    booking = service.create_booking(new_booking(discount_percent=10, discount_reason="Repeat"))
    assert booking.booking_id == 2
    assert booking.status == BookingStatus.PENDING
    assert booking.total_amount == 3_240_000
    assert booking.booking_code.startswith("BK") and len(booking.booking_code) == 10
    assert booking.booking_date is not None
    assert service.store.booking(2).total_amount == 3_240_000


def test_create_booking_ignores_client_total_and_status(service):
    booking = service.create_booking(new_booking(total_amount=1, status="COMPLETED"))
    assert booking.total_amount == 3_600_000
    assert booking.status == BookingStatus.PENDING


def test_create_booking_missing_fields(service):
    with pytest.raises(ValidationError) as exc:
        service.create_booking({"room_id": 1})
    assert "customer_id" in exc.value.details["missing"]


def test_create_booking_unknown_customer(service):
    with pytest.raises(NotFoundError):
        service.create_booking(new_booking(customer_id=99))


def test_create_booking_conflict(service):
    with pytest.raises(RoomUnavailableError) as exc:
        service.create_booking(new_booking(check_in_date="2024-06-04", check_out_date="2024-06-06"))
    assert exc.value.details["conflicting_booking_ids"] == [1]


def test_create_booking_back_to_back(service):
    booking = service.create_booking(new_booking(check_in_date="2024-06-05",
                                                 check_out_date="2024-06-06"))
    assert booking.nights == 1


def test_create_booking_room_in_maintenance(service):
    with pytest.raises(RoomUnavailableError):
        service.create_booking(new_booking(room_id=4))


def test_create_booking_same_day(service):
    with pytest.raises(InvalidRangeError):
        service.create_booking(new_booking(check_out_date="2024-06-10"))


def test_create_booking_unknown_channel(service):
    with pytest.raises(NotFoundError):
        service.create_booking(new_booking(channel_id=99))
    assert service.create_booking(new_booking(channel_id=2)).channel_id == 2


def test_concurrent_creates_cannot_double_book(service, monkeypatch):
    read_bookings = service.store.bookings

    def slow_bookings():
        rows = read_bookings()
        time.sleep(0.2)
        return rows

    monkeypatch.setattr(service.store, "bookings", slow_bookings)
    created, errors = [], []

    def create():
        try:
            created.append(service.create_booking(new_booking()))
        except RoomUnavailableError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=create) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 1
    assert len(errors) == 1
    assert [b.booking_id for b in read_bookings() if b.room_id == 1] == [1, 2]


def test_update_reprices(service):
    created = service.create_booking(new_booking())
    updated = service.update_booking(created.booking_id, {"includes_breakfast": True})
    # 3 adults * 150,000 * 3 nights on top of 3,600,000
    assert updated.total_amount == 4_950_000
    assert updated.booking_code == created.booking_code


def test_update_without_priced_fields_keeps_total(service):
    created = service.create_booking(new_booking())
    updated = service.update_booking(created.booking_id, {"special_requests": "Late arrival"})
    assert updated.total_amount == created.total_amount
    assert updated.special_requests == "Late arrival"


def test_update_into_conflict(service):
    created = service.create_booking(new_booking())
    with pytest.raises(RoomUnavailableError):
        service.update_booking(created.booking_id, {"check_in_date": "2024-06-04"})


def test_update_does_not_conflict_with_itself(service):
    created = service.create_booking(new_booking())
    updated = service.update_booking(created.booking_id, {"check_out_date": "2024-06-14"})
    assert updated.nights == 4


def test_update_onto_unbookable_room(service):
    created = service.create_booking(new_booking())
    with pytest.raises(RoomUnavailableError):
        service.update_booking(created.booking_id, {"room_id": 4})
    assert service.store.booking(created.booking_id).room_id == 1


def test_update_checks_new_customer(service):
    created = service.create_booking(new_booking())
    with pytest.raises(NotFoundError):
        service.update_booking(created.booking_id, {"customer_id": 99})
    with pytest.raises(NotFoundError):
        service.update_booking(created.booking_id, {"channel_id": 99})


def test_lifecycle_moves_room_status(service):
    b = service.create_booking(new_booking())
    service.change_status(b.booking_id, "CONFIRMED")
    service.change_status(b.booking_id, BookingStatus.CHECKED_IN)
    assert service.store.room(1).status == RoomStatus.OCCUPIED
    done = service.change_status(b.booking_id, "COMPLETED")
    assert done.status == BookingStatus.COMPLETED
    assert service.store.room(1).status == RoomStatus.CLEANING


def test_completed_booking_cannot_be_edited(service):
    service.change_status(1, "CHECKED_IN")
    service.change_status(1, "COMPLETED")
    with pytest.raises(InvalidTransitionError):
        service.update_booking(1, {"adults": 1})


def test_invalid_transitions(service):
    with pytest.raises(InvalidTransitionError):
        service.change_status(1, "PENDING")
    with pytest.raises(ValidationError):
        service.change_status(1, "ARCHIVED")
    with pytest.raises(InvalidTransitionError):
        validate_transition(BookingStatus.CHECKED_IN, BookingStatus.CANCELLED)


def test_cancel_records_reason_and_frees_room(service):
    cancelled = service.cancel_booking(1, reason="Flight cancelled", has_cancellation_fee=True)
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancellation_reason == "Flight cancelled"
    assert cancelled.has_cancellation_fee is True
    assert [r.room_id for r in service.available_rooms("2024-06-02", "2024-06-03")] == [1, 3]
    with pytest.raises(InvalidTransitionError):
        service.cancel_booking(1)


def test_delete_booking(service):
    service.delete_booking(1)
    with pytest.raises(NotFoundError):
        service.store.booking(1)


def test_zero_night_price_is_rejected(service):
    with pytest.raises(InvalidStayError):
        service.price(1, nights=0, adults=1)


def test_generate_booking_code():
    code = generate_booking_code()
    assert code.startswith("BK") and code[2:].isdigit() and len(code) == 10
