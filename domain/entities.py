"""Domain Entities - Aggregates"""
import random
import string
import threading
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, PrivateAttr

from domain import lifecycle
from domain.enums import ActionTag, BookingSource, BookingStatus, Bucket, PaymentStatus
from domain.errors import (
    DuplicateItemError, InvalidTransitionError, NotFoundError,
    QuantityLimitExceeded, ValidationError,
)
from domain.value_objects import (
    Amenity, CustomerInfo, ExtensionRecord, Money, ReservationLineItem,
    Schedule, StatusUpdateCommand, SubmittedOrder, DEFAULT_CURRENCY, utc_now,
)

DOWNPAYMENT_PERCENT = 20


class CartLineItem(BaseModel):
    """Child Entity for one amenity in a cart"""
    amenity_id: str
    name: str
    unit_price: Money
    quantity: int = Field(ge=1, default=1)
    max_limit: Optional[int] = Field(default=None, ge=1)
    capacity: int = Field(ge=0, default=0)

    class Config:
        from_attributes = True
        validate_assignment = True

    def subtotal(self) -> Money:
        return self.unit_price.multiply(self.quantity)

    def to_reservation_line(self) -> ReservationLineItem:
        return ReservationLineItem(
            amenity_id=self.amenity_id,
            amenity_name=self.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


class Cart(BaseModel):
    """Cart Aggregate Root Entity.

    One cart per browsing session. Mutations run under a per-cart lock since
    each is a read-modify-write of the line list; a rejected mutation leaves
    the cart exactly as it was.
    """

    # Identity
    cart_id: UUID = Field(default_factory=uuid4)
    session_id: str
    currency: str = DEFAULT_CURRENCY

    # Collections (child entities)
    items: List[CartLineItem] = []

    # Metadata
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)
    version: int = 1

    _lock: Any = PrivateAttr(default_factory=threading.RLock)

    class Config:
        from_attributes = True

    # ==================== MUTATION METHODS ====================
    def add_item(self, amenity: Amenity, quantity: int = 1) -> CartLineItem:
        """Add an amenity; adding one already in the cart merges quantities"""
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        with self._lock:
            existing = self._find(amenity.amenity_id)
            limit = amenity.max_limit
            if limit is None and existing is not None:
                limit = existing.max_limit

            if limit is not None and limit <= 0:
                raise QuantityLimitExceeded(0, amenity.amenity_id)

            current = existing.quantity if existing else 0
            if limit is not None and current + quantity > limit:
                raise QuantityLimitExceeded(limit, amenity.amenity_id)

            if existing is not None:
                existing.max_limit = limit
                existing.quantity = current + quantity
                line = existing
            else:
                line = CartLineItem(
                    amenity_id=amenity.amenity_id,
                    name=amenity.name,
                    unit_price=amenity.price,
                    quantity=quantity,
                    max_limit=limit,
                    capacity=amenity.capacity,
                )
                self._check_currency(line)
                self.items.append(line)

            self._touch()
            return line

    def add_line(self, line: CartLineItem) -> CartLineItem:
        """Insert a prepared line; an id already in the cart is rejected"""
        with self._lock:
            if self._find(line.amenity_id) is not None:
                raise DuplicateItemError(line.amenity_id)
            if line.max_limit is not None and line.quantity > line.max_limit:
                raise QuantityLimitExceeded(line.max_limit, line.amenity_id)
            self._check_currency(line)
            self.items.append(line)
            self._touch()
            return line

    def remove_item(self, amenity_id: str) -> CartLineItem:
        with self._lock:
            line = self.get_item(amenity_id)
            self.items.remove(line)
            self._touch()
            return line

    def adjust_quantity(self, amenity_id: str, delta: int) -> CartLineItem:
        """Change a line's quantity by delta.

        Increments past max_limit raise QuantityLimitExceeded; decrements
        stop at 1 (use remove_item to drop a line).
        """
        with self._lock:
            line = self.get_item(amenity_id)
            new_quantity = line.quantity + delta

            if delta > 0 and line.max_limit is not None and new_quantity > line.max_limit:
                raise QuantityLimitExceeded(line.max_limit, amenity_id)

            new_quantity = max(1, new_quantity)
            if new_quantity != line.quantity:
                line.quantity = new_quantity
                self._touch()
            return line

    def clear(self) -> None:
        with self._lock:
            self.items.clear()
            self._touch()

    # ==================== QUERY METHODS ====================
    def get_item(self, amenity_id: str) -> CartLineItem:
        line = self._find(amenity_id)
        if line is None:
            raise NotFoundError("Cart item", amenity_id)
        return line

    def is_empty(self) -> bool:
        return not self.items

    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def total(self) -> Money:
        total = Money.zero(self.currency)
        for line in self.items:
            total = total.add(line.subtotal())
        return total

    def downpayment(self, percent: int = DOWNPAYMENT_PERCENT) -> Money:
        return self.total().percentage(percent, 100)

    def submit(self, schedule: Schedule, downpayment_percent: int = DOWNPAYMENT_PERCENT) -> SubmittedOrder:
        """Snapshot the cart for booking; the cart itself is left as is"""
        schedule.ensure_valid()
        with self._lock:
            if self.is_empty():
                raise ValidationError("Cart is empty")
            return SubmittedOrder(
                lines=tuple(line.to_reservation_line() for line in self.items),
                schedule=schedule,
                total=self.total(),
                downpayment=self.downpayment(downpayment_percent),
            )

    # ==================== PRIVATE METHODS ====================
    def _find(self, amenity_id: str) -> Optional[CartLineItem]:
        for line in self.items:
            if line.amenity_id == amenity_id:
                return line
        return None

    def _check_currency(self, line: CartLineItem) -> None:
        if line.unit_price.currency != self.currency:
            raise ValidationError(
                f"Cart is priced in {self.currency}, item is priced in {line.unit_price.currency}"
            )

    def _touch(self) -> None:
        self.modified_at = utc_now()
        self.version += 1


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)
    reference_code: str

    # Value Objects
    customer: CustomerInfo
    schedule: Schedule
    total_amount: Money
    downpayment: Optional[Money] = None

    # Enums/Status
    status: BookingStatus = lifecycle.INITIAL_STATUS
    payment_status: Optional[PaymentStatus] = None
    source: BookingSource = BookingSource.ONLINE
    proof_of_payment_present: bool = False

    # Collections
    line_items: List[ReservationLineItem] = []
    extensions: List[ExtensionRecord] = []

    # Metadata
    guest_count: int = Field(ge=0, default=0)
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)
    created_by: str = "SYSTEM"
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHODS ====================
    @staticmethod
    def create(
        customer: CustomerInfo,
        schedule: Schedule,
        line_items: List[ReservationLineItem],
        total_amount: Optional[Money] = None,
        downpayment: Optional[Money] = None,
        source: BookingSource = BookingSource.ONLINE,
        guest_count: int = 0,
        created_by: str = "SYSTEM",
        reference_code: Optional[str] = None,
    ) -> "Reservation":
        """Create new reservation with validation"""
        schedule.ensure_valid()
        if not line_items:
            raise ValidationError("A reservation needs at least one amenity")

        if total_amount is None:
            total_amount = Money.zero(line_items[0].unit_price.currency)
            for line in line_items:
                total_amount = total_amount.add(line.subtotal())

        Reservation._validate_downpayment(downpayment, total_amount)

        return Reservation(
            reference_code=reference_code or Reservation.generate_reference_code(),
            customer=customer,
            schedule=schedule,
            line_items=list(line_items),
            total_amount=total_amount,
            downpayment=downpayment,
            source=source,
            guest_count=guest_count,
            status=lifecycle.INITIAL_STATUS,
            created_by=created_by,
        )

    @staticmethod
    def from_order(
        order: SubmittedOrder,
        customer: CustomerInfo,
        source: BookingSource = BookingSource.ONLINE,
        guest_count: int = 0,
        created_by: str = "SYSTEM",
    ) -> "Reservation":
        """Create a pending reservation from a submitted cart"""
        return Reservation.create(
            customer=customer,
            schedule=order.schedule,
            line_items=list(order.lines),
            total_amount=order.total,
            downpayment=order.downpayment,
            source=source,
            guest_count=guest_count,
            created_by=created_by,
        )

    # ==================== STATE TRANSITION METHODS ====================
    def transition_to(self, target: BookingStatus) -> StatusUpdateCommand:
        """Apply a validated status change and return the command to persist"""
        command = lifecycle.plan_transition(self.reservation_id, self.status, target)

        if target == BookingStatus.CONFIRMED and not self.proof_of_payment_present:
            raise ValidationError("Payment must be confirmed to proceed")

        self.status = target
        if target in (BookingStatus.CHECKED_IN, BookingStatus.COMPLETED):
            self.payment_status = PaymentStatus.FULLY_PAID
        self._touch()
        return command

    def perform(self, action: ActionTag) -> Optional[StatusUpdateCommand]:
        """Run a UI action; returns the status change it causes, if any"""
        target = lifecycle.target_for_action(self.status, action)
        if target is None:
            return None
        return self.transition_to(target)

    def attach_proof_of_payment(self) -> None:
        if self.status != BookingStatus.PENDING:
            raise ValidationError(
                f"Proof of payment can only be attached while Pending, not {self.status.value}"
            )
        self.proof_of_payment_present = True
        self._touch()

    def extend(
        self,
        hours: int,
        additional_cost: Money,
        description: Optional[str] = None,
    ) -> ExtensionRecord:
        """Add hours to a checked-in stay and charge for them"""
        if ActionTag.EXTEND not in lifecycle.allowed_actions(self.status):
            raise InvalidTransitionError(self.status, ActionTag.EXTEND)
        if hours < 1:
            raise ValidationError("Extension must be at least 1 hour")
        if additional_cost.amount < 0:
            raise ValidationError("Extension cost cannot be negative")

        schedule = self.schedule.extended_by(hours)
        total_amount = self.total_amount.add(additional_cost)
        record = ExtensionRecord(
            hours=hours,
            additional_cost=additional_cost,
            timestamp=utc_now(),
            description=description,
        )
        self.total_amount = total_amount
        self.extensions.append(record)
        self.schedule = schedule
        self._touch()
        return record

    # ==================== QUERY METHODS ====================
    @property
    def bucket(self) -> Bucket:
        return lifecycle.classify_bucket(self.status)

    def is_terminal(self) -> bool:
        return lifecycle.is_terminal(self.status)

    def available_actions(self):
        return lifecycle.allowed_actions(self.status)

    # ==================== PRIVATE METHODS ====================
    @staticmethod
    def _validate_downpayment(downpayment: Optional[Money], total_amount: Money) -> None:
        if downpayment is None:
            return
        if downpayment > total_amount:
            raise ValidationError("Downpayment cannot exceed the total amount")

    @staticmethod
    def generate_reference_code() -> str:
        """Generate transaction reference code"""
        return "TRX-" + ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))

    def _touch(self) -> None:
        self.modified_at = utc_now()
        self.version += 1
