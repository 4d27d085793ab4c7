import json
from datetime import date
from pathlib import Path

import pytest

from app import create_app
from booking_service import BookingService
from config import TestingConfig
from models import Booking, BookingStatus, Room, RoomStatus, RoomType
from store import JsonStore

SEED_FILE = Path(__file__).resolve().parents[1] / "seed.json"


@pytest.fixture
def seed_document():
    with open(SEED_FILE, encoding="utf-8") as fh:
        return json.load(fh)


@pytest.fixture
def standard_type():
    return RoomType(room_type_id=1, name="Standard", base_price=1_000_000, max_adults=2,
                    extra_person_fee=200_000)


def make_room(room_id, status=RoomStatus.AVAILABLE):
    return Room(room_id=room_id, room_number=str(100 + room_id), room_type_id=1, status=status)


def make_booking(room_id, check_in, check_out, status=BookingStatus.CONFIRMED, booking_id=None):
    return Booking(booking_id=booking_id, room_id=room_id, customer_id=1,
                   check_in_date=date.fromisoformat(check_in),
                   check_out_date=date.fromisoformat(check_out), status=status)


@pytest.fixture
def store(seed_document):
    s = JsonStore()
    s.seed(seed_document)
    return s


@pytest.fixture
def service(store):
    return BookingService(store)


@pytest.fixture
def app(seed_document):
    config = {k: getattr(TestingConfig, k) for k in dir(TestingConfig) if k.isupper()}
    app = create_app(config)
    app.extensions["booking_service"].store.seed(seed_document)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
