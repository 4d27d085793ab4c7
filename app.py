# app.py
import json
import logging

from flask import Blueprint, Flask, current_app, jsonify, request

from booking_service import BookingService
from config import DefaultConfig
from dates import parse_date
from errors import HotelError, ValidationError
from logging_setup import configure_logging
from models import BookingStatus, Customer, Room, RoomStatus, RoomType, to_flag, to_int
from store import JsonStore

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")


def bookings() -> BookingService:
    return current_app.extensions["booking_service"]


def store() -> JsonStore:
    return bookings().store


def payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_int(name):
    value = request.args.get(name)
    if value in (None, ""):
        return None
    return to_int(value)


def query_date(name):
    value = request.args.get(name)
    if value in (None, ""):
        return None
    return parse_date(value)


# --- Rooms ---

@api.route("/rooms", methods=["GET", "POST"])
def api_rooms():
    if request.method == "GET":
        status = request.args.get("status")
        rooms = store().rooms()
        if status:
            rooms = [r for r in rooms if r.status.value == status.upper()]
        return jsonify([r.to_dict() for r in rooms])

    data = payload()
    if not data.get("room_number"):
        raise ValidationError("room_number required")
    if data.get("room_type_id") is None:
        raise ValidationError("room_type_id required")
    room = Room.from_dict(data)
    room.room_id = None
    with store().transaction():
        store().room_type(room.room_type_id)
        if any(r.room_number == room.room_number for r in store().rooms()):
            raise ValidationError("Room number already exists. Choose a unique number.",
                                  {"room_number": room.room_number})
        saved = store().insert("rooms", room.to_dict())
    logger.info("Added room %s", room.room_number)
    return jsonify(saved), 201


@api.route("/rooms/<int:room_id>", methods=["GET"])
def api_room(room_id):
    return jsonify(store().room(room_id).to_dict())


@api.route("/rooms/<int:room_id>/status", methods=["PATCH"])
def api_room_status(room_id):
    status = payload().get("status")
    try:
        status = RoomStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown room status {status!r}") from None
    room = store().room(room_id)
    room.status = status
    saved = store().replace("rooms", room_id, room.to_dict())
    logger.info("Room %s set to %s", room.room_number, status.value)
    return jsonify(saved)


@api.route("/rooms/available")
def api_available_rooms():
    check_in = request.args.get("check_in", "")
    check_out = request.args.get("check_out", "")
    if not check_in or not check_out:
        raise ValidationError("check_in and check_out are required")
    rooms = bookings().available_rooms(check_in, check_out)
    return jsonify([r.to_dict() for r in rooms])


# --- Room types ---

@api.route("/room-types", methods=["GET", "POST"])
def api_room_types():
    if request.method == "GET":
        return jsonify(store().list("room_types"))

    data = payload()
    if not data.get("name"):
        raise ValidationError("name required")
    room_type = RoomType.from_dict(data)
    room_type.room_type_id = None
    if room_type.base_price < 0 or room_type.extra_person_fee < 0:
        raise ValidationError("Prices cannot be negative")
    if room_type.max_adults < 1:
        raise ValidationError("max_adults must be at least 1")
    return jsonify(store().insert("room_types", room_type.to_dict())), 201


@api.route("/room-types/<int:room_type_id>", methods=["GET"])
def api_room_type(room_type_id):
    return jsonify(store().room_type(room_type_id).to_dict())


# --- Customers ---

@api.route("/customers", methods=["GET", "POST"])
def api_customers():
    if request.method == "GET":
        name = request.args.get("name", "").strip().lower()
        customers = store().list("customers")
        if name:
            customers = [c for c in customers if name in c.get("full_name", "").lower()]
        return jsonify(customers)

    data = payload()
    if not data.get("full_name", "").strip():
        raise ValidationError("full_name required")
    customer = Customer.from_dict(data)
    customer.customer_id = None
    return jsonify(store().insert("customers", customer.to_dict())), 201


@api.route("/customers/<int:customer_id>", methods=["GET"])
def api_customer(customer_id):
    return jsonify(store().customer(customer_id).to_dict())


# --- Bookings ---

@api.route("/bookings", methods=["GET", "POST"])
def api_bookings():
    if request.method == "GET":
        result = store().bookings()
        status = request.args.get("status")
        customer_id = query_int("customer_id")
        check_in_from = query_date("check_in_from")
        check_out_to = query_date("check_out_to")
        if status:
            result = [b for b in result if b.status.value == status.upper()]
        if customer_id is not None:
            result = [b for b in result if b.customer_id == customer_id]
        if check_in_from is not None:
            result = [b for b in result if b.check_in_date >= check_in_from]
        if check_out_to is not None:
            result = [b for b in result if b.check_out_date <= check_out_to]
        return jsonify([b.to_dict() for b in result])

    booking = bookings().create_booking(payload())
    return jsonify(booking.to_dict()), 201


@api.route("/bookings/<int:booking_id>", methods=["GET", "PUT", "DELETE"])
def api_booking(booking_id):
    if request.method == "GET":
        return jsonify(store().booking(booking_id).to_dict())
    if request.method == "PUT":
        return jsonify(bookings().update_booking(booking_id, payload()).to_dict())
    bookings().delete_booking(booking_id)
    return "", 204


@api.route("/bookings/<int:booking_id>/status", methods=["PATCH"])
def api_booking_status(booking_id):
    status = payload().get("status")
    if status == BookingStatus.CANCELLED.value:
        raise ValidationError("Use the cancel endpoint to cancel a booking")
    return jsonify(bookings().change_status(booking_id, status).to_dict())


@api.route("/bookings/<int:booking_id>/cancel", methods=["POST"])
def api_cancel_booking(booking_id):
    data = payload()
    booking = bookings().cancel_booking(
        booking_id,
        reason=data.get("cancellation_reason"),
        has_cancellation_fee=to_flag(data.get("has_cancellation_fee", False)),
    )
    return jsonify(booking.to_dict())


@api.route("/quote", methods=["POST"])
def api_quote():
    data = payload()
    for name in ("check_in_date", "check_out_date", "adults"):
        if data.get(name) in (None, ""):
            raise ValidationError(f"{name} required")
    counts = {k: to_int(data.get(k) or 0) for k in ("adults", "children", "extra_beds")}
    room_id, room_type_id = data.get("room_id"), data.get("room_type_id")
    breakdown = bookings().quote(
        data["check_in_date"], data["check_out_date"],
        includes_breakfast=to_flag(data.get("includes_breakfast", False)),
        discount_percent=data.get("discount_percent", 0),
        room_id=None if room_id is None else to_int(room_id),
        room_type_id=None if room_type_id is None else to_int(room_type_id),
        **counts,
    )
    result = breakdown.quantized(current_app.config["CURRENCY_PLACES"]).to_dict()
    result["currency"] = current_app.config["CURRENCY"]
    return jsonify(result)


@api.route("/health")
def api_health():
    return jsonify({"status": "ok"})


def handle_hotel_error(err: HotelError):
    return jsonify(err.to_dict()), err.status_code


def create_app(config=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(DefaultConfig)
    app.config.from_prefixed_env("HOTEL")
    if config:
        app.config.from_mapping(config)

    if not app.config.get("TESTING"):
        configure_logging(app.config["LOG_LEVEL"], app.config["LOG_FORMAT"])

    data_store = JsonStore(app.config["DATA_FILE"])
    seed_file = app.config["SEED_FILE"]
    if seed_file and not data_store.list("rooms"):
        with open(seed_file, encoding="utf-8") as fh:
            data_store.seed(json.load(fh))
        logger.info("Seeded store from %s", seed_file)

    app.extensions["booking_service"] = BookingService(
        data_store,
        extra_bed_rate=app.config["EXTRA_BED_NIGHTLY_RATE"],
        breakfast_rate=app.config["BREAKFAST_NIGHTLY_RATE"],
    )
    app.register_blueprint(api)
    app.register_error_handler(HotelError, handle_hotel_error)
    return app


if __name__ == "__main__":
    create_app().run(debug=True)
