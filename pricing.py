# pricing.py
"""Booking price computation.

Amounts are Decimals throughout; nothing is rounded here. Call
``PriceBreakdown.quantized()`` when an amount is shown to a person.
"""
from decimal import Decimal

from dates import nights_between
from errors import InvalidDiscountError, InvalidOccupancyError, InvalidStayError
from models import PriceBreakdown, RoomType, to_decimal, to_flag

# VND per night, platform wide; overridable via app config
EXTRA_BED_NIGHTLY_RATE = Decimal("300000")
BREAKFAST_NIGHTLY_RATE = Decimal("150000")

HUNDRED = Decimal("100")


def _validate(nights, adults, children, extra_beds, discount_percent) -> Decimal:
    if nights < 1:
        raise InvalidStayError(f"Stay must be at least one night, got {nights}",
                               {"nights": nights})
    if adults < 1 or children < 0 or extra_beds < 0:
        raise InvalidOccupancyError(
            "Need at least one adult and no negative counts",
            {"adults": adults, "children": children, "extra_beds": extra_beds},
        )
    discount = to_decimal(discount_percent, InvalidDiscountError)
    if not discount.is_finite() or discount < 0 or discount > HUNDRED:
        raise InvalidDiscountError(f"Discount must be between 0 and 100, got {discount}",
                                   {"discount_percent": str(discount)})
    return discount


def calculate_price(room_type: RoomType, nights: int, adults: int, children: int = 0,
                    extra_beds: int = 0, includes_breakfast: bool = False,
                    discount_percent=0, *,
                    extra_bed_rate=EXTRA_BED_NIGHTLY_RATE,
                    breakfast_rate=BREAKFAST_NIGHTLY_RATE) -> PriceBreakdown:
    """Price a stay.

    The discount applies to the sum of all line items, not to each one.
    Only adults beyond ``room_type.max_adults`` pay the extra-person fee;
    children never count toward that overage.
    """
    discount = _validate(nights, adults, children, extra_beds, discount_percent)

    base = to_decimal(room_type.base_price) * nights

    extra_adults = max(0, adults - room_type.max_adults)
    extra_person_fee = extra_adults * to_decimal(room_type.extra_person_fee) * nights

    extra_bed_fee = extra_beds * to_decimal(extra_bed_rate) * nights

    if to_flag(includes_breakfast):
        breakfast_fee = (adults + children) * to_decimal(breakfast_rate) * nights
    else:
        breakfast_fee = Decimal("0")

    subtotal = base + extra_person_fee + extra_bed_fee + breakfast_fee
    discount_amount = subtotal * discount / HUNDRED

    return PriceBreakdown(
        nights=nights,
        base=base,
        extra_person_fee=extra_person_fee,
        extra_bed_fee=extra_bed_fee,
        breakfast_fee=breakfast_fee,
        subtotal=subtotal,
        discount_percent=discount,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
    )


def calculate_stay_price(room_type: RoomType, check_in, check_out, adults: int,
                         children: int = 0, extra_beds: int = 0,
                         includes_breakfast: bool = False, discount_percent=0,
                         **rates) -> PriceBreakdown:
    return calculate_price(room_type, nights_between(check_in, check_out), adults,
                           children, extra_beds, includes_breakfast, discount_percent,
                           **rates)
