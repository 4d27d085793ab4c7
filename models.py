# models.py
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from functools import wraps
from typing import Optional, Dict, Any

from dates import parse_date
from errors import InvalidDiscountError, ValidationError


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    CLEANING = "CLEANING"
    INACTIVE = "INACTIVE"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


def to_decimal(value, error=ValidationError) -> Decimal:
    # str() first so 0.1 stays 0.1 instead of its binary expansion
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise error(f"Not a number: {value!r}")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise error(f"Not a number: {value!r}") from None
    # NaN and Infinity would blow up on the first comparison
    if not value.is_finite():
        raise error(f"Not a finite number: {value!r}")
    return value


def to_int(value) -> int:
    """Whole number from JSON or a query string; 2.7 is rejected, not truncated."""
    if isinstance(value, bool):
        raise ValidationError(f"Not a whole number: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Not a whole number: {value!r}")


TRUE_TEXT = ("true", "1")
FALSE_TEXT = ("false", "0")


def to_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_TEXT:
            return True
        if text in FALSE_TEXT:
            return False
    raise ValidationError(f"Not a true/false value: {value!r}")


def _coerces(from_dict):
    # bad enum values and non-numeric counts surface as 400s, not 500s
    @wraps(from_dict)
    def wrapper(cls, data):
        try:
            return from_dict(cls, data)
        except (TypeError, ValueError) as exc:
            raise ValidationError(str(exc)) from exc
    return wrapper


def _opt_int(value):
    return None if value in (None, "") else to_int(value)


def _pick(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class RoomType:
    room_type_id: Optional[int] = None
    name: str = ""
    description: str = ""
    base_price: Decimal = Decimal("0")
    max_adults: int = 2
    max_children: int = 0
    max_child_age: int = 12
    extra_person_fee: Decimal = Decimal("0")
    default_discount_percent: Decimal = Decimal("0")
    long_stay_discount: Decimal = Decimal("0")
    early_booking_discount: Decimal = Decimal("0")
    active: bool = True

    @classmethod
    @_coerces
    def from_dict(cls, data: Dict[str, Any]) -> "RoomType":
        rt = cls(**_pick(cls, data))
        rt.room_type_id = _opt_int(rt.room_type_id)
        for name in ("base_price", "extra_person_fee", "default_discount_percent",
                     "long_stay_discount", "early_booking_discount"):
            setattr(rt, name, to_decimal(getattr(rt, name)))
        rt.max_adults = to_int(rt.max_adults)
        rt.max_children = to_int(rt.max_children)
        rt.max_child_age = to_int(rt.max_child_age)
        rt.active = to_flag(rt.active)
        return rt

    def to_dict(self) -> Dict[str, Any]:
        return _as_json(self)


@dataclass
class Room:
    room_id: Optional[int] = None
    room_number: str = ""
    room_type_id: Optional[int] = None
    status: RoomStatus = RoomStatus.AVAILABLE
    notes: str = ""

    @classmethod
    @_coerces
    def from_dict(cls, data: Dict[str, Any]) -> "Room":
        room = cls(**_pick(cls, data))
        room.room_number = str(room.room_number)
        room.room_id = _opt_int(room.room_id)
        room.room_type_id = _opt_int(room.room_type_id)
        room.status = RoomStatus(room.status)
        return room

    def to_dict(self) -> Dict[str, Any]:
        return _as_json(self)


@dataclass
class Customer:
    customer_id: Optional[int] = None
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    id_number: str = ""
    nationality: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        return cls(**_pick(cls, data))

    def to_dict(self) -> Dict[str, Any]:
        return _as_json(self)


@dataclass
class Booking:
    booking_id: Optional[int] = None
    booking_code: str = ""
    customer_id: Optional[int] = None
    room_id: Optional[int] = None
    channel_id: Optional[int] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    adults: int = 1
    children: int = 0
    child_ages: str = ""
    booking_date: Optional[date] = None
    status: BookingStatus = BookingStatus.PENDING
    has_cancellation_fee: bool = False
    cancellation_reason: Optional[str] = None
    special_requests: str = ""
    total_amount: Decimal = Decimal("0")
    extra_beds: int = 0
    includes_breakfast: bool = False
    discount_percent: Decimal = Decimal("0")
    discount_reason: Optional[str] = None
    staff_id: Optional[int] = None

    @classmethod
    @_coerces
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        b = cls(**_pick(cls, data))
        b.check_in_date = parse_date(b.check_in_date) if b.check_in_date else None
        b.check_out_date = parse_date(b.check_out_date) if b.check_out_date else None
        b.booking_date = parse_date(b.booking_date) if b.booking_date else None
        for name in ("booking_id", "customer_id", "room_id", "channel_id", "staff_id"):
            setattr(b, name, _opt_int(getattr(b, name)))
        b.status = BookingStatus(b.status)
        b.total_amount = to_decimal(b.total_amount)
        b.discount_percent = to_decimal(b.discount_percent, InvalidDiscountError)
        b.adults = to_int(b.adults)
        b.children = to_int(b.children or 0)
        b.extra_beds = to_int(b.extra_beds or 0)
        b.includes_breakfast = to_flag(b.includes_breakfast)
        b.has_cancellation_fee = to_flag(b.has_cancellation_fee)
        return b

    def to_dict(self) -> Dict[str, Any]:
        return _as_json(self)

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days


@dataclass(frozen=True)
class PriceBreakdown:
    """Itemized charge for one stay. ``total == subtotal - discount_amount``."""
    nights: int
    base: Decimal
    extra_person_fee: Decimal
    extra_bed_fee: Decimal
    breakfast_fee: Decimal
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    total: Decimal

    def quantized(self, places: int = 0) -> "PriceBreakdown":
        """Round every amount for display; VND has no minor unit, hence 0."""
        exp = Decimal(1).scaleb(-places)

        def q(value):
            return value.quantize(exp, rounding=ROUND_HALF_UP)

        discount = q(self.discount_amount)
        subtotal = q(self.subtotal)
        return PriceBreakdown(
            nights=self.nights,
            base=q(self.base),
            extra_person_fee=q(self.extra_person_fee),
            extra_bed_fee=q(self.extra_bed_fee),
            breakfast_fee=q(self.breakfast_fee),
            subtotal=subtotal,
            discount_percent=self.discount_percent,
            discount_amount=discount,
            total=subtotal - discount,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _as_json(self)


def _as_json(obj) -> Dict[str, Any]:
    out = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = str(value)
        out[f.name] = value
    return out
