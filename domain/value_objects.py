"""Domain Value Objects"""
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple, Union
from uuid import UUID

from pydantic import BaseModel, Field, StrictInt

from domain.enums import BookingStatus
from domain.errors import CurrencyMismatchError, NegativeResultError, ValidationError

DEFAULT_CURRENCY = "PHP"

# minor units per major unit (centavos per peso)
MINOR_UNITS = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Money(BaseModel):
    """Value Object for monetary amounts, held as integer minor units"""
    amount: StrictInt = 0
    currency: str = DEFAULT_CURRENCY

    class Config:
        frozen = True

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(amount=0, currency=currency)

    @classmethod
    def from_major(cls, value: Union[int, str, Decimal], currency: str = DEFAULT_CURRENCY) -> "Money":
        """Build from a major-unit amount such as 1500 or "1500.50".

        Raises ValidationError when the value is not a finite number or has
        more digits than the decimal context can hold.
        """
        try:
            major = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid amount: {value!r}")
        if not major.is_finite():
            raise ValidationError(f"Invalid amount: {value!r}")
        try:
            minor = (major * MINOR_UNITS).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValidationError(f"Amount out of range: {value!r}")
        return cls(amount=int(minor), currency=currency)

    def to_major(self) -> Decimal:
        return Decimal(self.amount) / MINOR_UNITS

    # ==================== ARITHMETIC ====================
    def add(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other: "Money", allow_negative: bool = False) -> "Money":
        """Subtract other; a negative result is an error unless allow_negative"""
        self._check_currency(other)
        result = self.amount - other.amount
        if result < 0 and not allow_negative:
            raise NegativeResultError(
                f"{self.amount} - {other.amount} {self.currency} would be negative",
                details={"minuend": self.amount, "subtrahend": other.amount},
            )
        return Money(amount=result, currency=self.currency)

    def multiply(self, quantity: int) -> "Money":
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"Quantity must be an integer, got {quantity!r}")
        return Money(amount=self.amount * quantity, currency=self.currency)

    def percentage(self, numerator: int, denominator: int = 100) -> "Money":
        """numerator/denominator of this amount, rounded half up to the minor unit"""
        if denominator <= 0:
            raise ValidationError("Rate denominator must be positive")
        if self.amount < 0:
            return Money(amount=-self._half_up(-self.amount, numerator, denominator), currency=self.currency)
        return Money(amount=self._half_up(self.amount, numerator, denominator), currency=self.currency)

    @staticmethod
    def _half_up(amount: int, numerator: int, denominator: int) -> int:
        return (2 * amount * numerator + denominator) // (2 * denominator)

    def is_zero(self) -> bool:
        return self.amount == 0

    # ==================== ORDERING ====================
    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount >= other.amount

    def _check_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise ValidationError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(self.currency, other.currency)


class Schedule(BaseModel):
    """Value Object for a booking's check-in/check-out window.

    Both ends are optional so an incomplete form can still be represented;
    ensure_valid() enforces the booking rules.
    """
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None

    class Config:
        frozen = True

    def is_complete(self) -> bool:
        return self.check_in is not None and self.check_out is not None

    def ensure_valid(self) -> "Schedule":
        if not self.is_complete():
            raise ValidationError("Please set Check-in and Check-out dates")
        if self.check_in >= self.check_out:
            raise ValidationError(
                "Check-out must be after check-in",
                details={"check_in": self.check_in, "check_out": self.check_out},
            )
        return self

    def days(self) -> int:
        """Number of started 24-hour periods, never less than 1"""
        if not self.is_complete():
            return 1
        seconds = abs((self.check_out - self.check_in).total_seconds())
        return max(1, math.ceil(seconds / 86400))

    def extended_by(self, hours: int) -> "Schedule":
        try:
            check_out = self.check_out + timedelta(hours=hours)
        except OverflowError:
            raise ValidationError(f"Cannot extend the stay by {hours} hours")
        return Schedule(check_in=self.check_in, check_out=check_out)


class CustomerInfo(BaseModel):
    """Value Object for the booking customer"""
    name: str = Field(min_length=1)
    contact_number: Optional[str] = None
    email: Optional[str] = None

    class Config:
        frozen = True


class Amenity(BaseModel):
    """Catalogue entry offered to a cart"""
    amenity_id: str
    name: str
    price: Money
    capacity: int = Field(ge=0, default=0)
    slots_left: Optional[int] = None

    class Config:
        frozen = True

    @property
    def max_limit(self) -> Optional[int]:
        return self.slots_left


class ReservationLineItem(BaseModel):
    """One booked amenity on a reservation"""
    amenity_id: Optional[str] = None
    amenity_name: str
    quantity: int = Field(ge=1)
    unit_price: Money

    class Config:
        frozen = True

    def subtotal(self) -> Money:
        return self.unit_price.multiply(self.quantity)


class ExtensionRecord(BaseModel):
    """An extension added to a checked-in reservation"""
    hours: int = Field(ge=0, default=0)
    additional_cost: Money = Field(default_factory=Money.zero)
    timestamp: Optional[datetime] = None
    description: Optional[str] = None

    class Config:
        frozen = True


class SubmittedOrder(BaseModel):
    """Immutable snapshot of a submitted cart"""
    lines: Tuple[ReservationLineItem, ...]
    schedule: Schedule
    total: Money
    downpayment: Money
    submitted_at: datetime = Field(default_factory=utc_now)

    class Config:
        frozen = True


class StatusUpdateCommand(BaseModel):
    """Status change for the persistence layer to apply"""
    reservation_id: UUID
    target_status: BookingStatus
    issued_at: datetime = Field(default_factory=utc_now)

    class Config:
        frozen = True
