"""Pricing engine.

Pure functions deriving the money figures shown for a reservation or a cart:

    base amount   = total amount - extension fees (floored at zero, flagged)
    downpayment   = recorded value, else DOWNPAYMENT_PERCENT of the total
    balance       = total amount - downpayment
    extension fee = ceil((total / EXTENSION_HOURLY_DIVISOR) * hours) to the
                    next EXTENSION_ROUNDING_STEP
"""
from typing import Optional

from pydantic import BaseModel

from domain import ledger
from domain.entities import DOWNPAYMENT_PERCENT, Cart, Reservation
from domain.enums import BookingStatus, PaymentStatus
from domain.errors import ValidationError
from domain.value_objects import Money, Schedule
from infrastructure.logging import get_logger

logger = get_logger(__name__)

EXTENSION_HOURLY_DIVISOR = 22
EXTENSION_ROUNDING_STEP = 1000  # ₱10 in minor units
ENTRANCE_FEE_PER_GUEST = 5000  # ₱50 in minor units

FULLY_PAID_STATUSES = (BookingStatus.CHECKED_IN, BookingStatus.COMPLETED)


class PricingBreakdown(BaseModel):
    base_amount: Money
    extension_cost: Money
    total_amount: Money
    downpayment: Money
    balance: Money
    is_fully_paid: bool
    # base amount had to be floored at zero; the record's figures disagree
    inconsistent: bool = False

    class Config:
        frozen = True


class StayQuote(BaseModel):
    """Walk-in quote: amenities and entrance fees over the stay"""
    days: int
    guests: int
    amenities_total: Money
    entrance_fee_total: Money
    grand_total: Money
    downpayment: Money

    class Config:
        frozen = True


def compute_breakdown(reservation: Reservation, downpayment_percent: int = DOWNPAYMENT_PERCENT) -> PricingBreakdown:
    """Derive the display figures for a reservation snapshot.

    Raises NegativeResultError when a recorded downpayment exceeds the total.
    """
    total = reservation.total_amount
    extension_cost = ledger.aggregate(reservation.extensions, total.currency).total_cost

    inconsistent = False
    if extension_cost > total:
        logger.warning(
            "Reservation %s: extension fees %s exceed total %s, flooring base amount",
            reservation.reference_code, extension_cost.amount, total.amount,
        )
        base_amount = Money.zero(total.currency)
        inconsistent = True
    else:
        base_amount = total.subtract(extension_cost)

    downpayment = reservation.downpayment
    if downpayment is None:
        downpayment = total.percentage(downpayment_percent, 100)

    balance = total.subtract(downpayment)

    return PricingBreakdown(
        base_amount=base_amount,
        extension_cost=extension_cost,
        total_amount=total,
        downpayment=downpayment,
        balance=balance,
        is_fully_paid=is_fully_paid(reservation.status, reservation.payment_status),
        inconsistent=inconsistent,
    )


def is_fully_paid(status: BookingStatus, payment_status: Optional[PaymentStatus] = None) -> bool:
    return status in FULLY_PAID_STATUSES or payment_status == PaymentStatus.FULLY_PAID


def quote_extension(
    total_amount: Money,
    hours: int,
    hourly_divisor: int = EXTENSION_HOURLY_DIVISOR,
    rounding_step: int = EXTENSION_ROUNDING_STEP,
) -> Money:
    """Late check-out fee for the given number of hours"""
    if hours < 1:
        raise ValidationError("Extension must be at least 1 hour")
    if hourly_divisor <= 0 or rounding_step <= 0:
        raise ValidationError("Extension rate settings must be positive")
    # ceil(total * hours / divisor / step) * step, in integers
    steps = -(-(total_amount.amount * hours) // (hourly_divisor * rounding_step))
    return Money(amount=steps * rounding_step, currency=total_amount.currency)


def quote_stay(
    cart: Cart,
    schedule: Schedule,
    guests: int = 0,
    entrance_fee_per_guest: int = ENTRANCE_FEE_PER_GUEST,
    downpayment_percent: int = DOWNPAYMENT_PERCENT,
) -> StayQuote:
    """Price a cart over the whole stay, including per-guest entrance fees"""
    if guests < 0:
        raise ValidationError("Guest count cannot be negative")
    days = schedule.days()
    amenities_total = cart.total().multiply(days)
    entrance_fee_total = Money(amount=entrance_fee_per_guest, currency=cart.currency).multiply(guests * days)
    grand_total = amenities_total.add(entrance_fee_total)
    return StayQuote(
        days=days,
        guests=guests,
        amenities_total=amenities_total,
        entrance_fee_total=entrance_fee_total,
        grand_total=grand_total,
        downpayment=grand_total.percentage(downpayment_percent, 100),
    )
