"""Application Services - Business use cases"""
from typing import Any, FrozenSet, List, Mapping, Optional, Tuple
from uuid import UUID

from application.records import reservation_from_record
from domain import lifecycle, pricing
from domain.entities import Cart, CartLineItem, Reservation
from domain.enums import ActionTag, BookingSource, BookingStatus, Bucket, PaymentStatus
from domain.errors import NotFoundError, ReservationError
from domain.repositories import AmenityRepository, CartRepository, ReservationRepository
from domain.value_objects import (
    Amenity, CustomerInfo, ExtensionRecord, Money, Schedule, StatusUpdateCommand,
)
from infrastructure.config import Settings, get_settings
from infrastructure.logging import get_logger, log_cart_operation, log_status_command

logger = get_logger(__name__)


class AmenityService:
    """Service for the amenity catalogue"""

    def __init__(self, repository: AmenityRepository):
        self.repository = repository

    async def register_amenity(self, amenity: Amenity) -> Amenity:
        return await self.repository.save(amenity)

    async def get_amenity(self, amenity_id: str) -> Amenity:
        amenity = await self.repository.find_by_id(amenity_id)
        if not amenity:
            raise NotFoundError("Amenity", amenity_id)
        return amenity

    async def list_amenities(self) -> List[Amenity]:
        """All amenities, the ones with free slots first"""
        amenities = await self.repository.find_all()
        return sorted(amenities, key=lambda a: a.slots_left is not None and a.slots_left <= 0)


class CartService:
    """Service for cart use cases, one cart per session"""

    def __init__(self,
                 repository: CartRepository,
                 amenity_repo: AmenityRepository,
                 reservation_repo: ReservationRepository,
                 settings: Optional[Settings] = None):
        self.repository = repository
        self.amenity_repo = amenity_repo
        self.reservation_repo = reservation_repo
        self.settings = settings or get_settings()

    async def get_cart(self, session_id: str) -> Cart:
        """Get the session's cart, creating an empty one on first use"""
        cart = await self.repository.find_by_session(session_id)
        if cart is None:
            cart = Cart(session_id=session_id, currency=self.settings.CURRENCY)
            await self.repository.save(cart)
        return cart

    async def add_item(self, session_id: str, amenity_id: str, quantity: int = 1) -> CartLineItem:
        amenity = await self.amenity_repo.find_by_id(amenity_id)
        if not amenity:
            raise NotFoundError("Amenity", amenity_id)

        cart = await self.get_cart(session_id)
        try:
            line = cart.add_item(amenity, quantity)
        except ReservationError as e:
            log_cart_operation(logger, "add_item", session_id, amenity_id=amenity_id, error=e.message)
            raise
        await self.repository.save(cart)
        log_cart_operation(logger, "add_item", session_id, amenity_id=amenity_id,
                           quantity=line.quantity, total_minor=cart.total().amount)
        return line

    async def adjust_quantity(self, session_id: str, amenity_id: str, delta: int) -> CartLineItem:
        cart = await self.get_cart(session_id)
        try:
            line = cart.adjust_quantity(amenity_id, delta)
        except ReservationError as e:
            log_cart_operation(logger, "adjust_quantity", session_id, amenity_id=amenity_id,
                               error=e.message, delta=delta)
            raise
        await self.repository.save(cart)
        log_cart_operation(logger, "adjust_quantity", session_id, amenity_id=amenity_id,
                           quantity=line.quantity, total_minor=cart.total().amount)
        return line

    async def remove_item(self, session_id: str, amenity_id: str) -> Cart:
        cart = await self.get_cart(session_id)
        cart.remove_item(amenity_id)
        await self.repository.save(cart)
        log_cart_operation(logger, "remove_item", session_id, amenity_id=amenity_id,
                           total_minor=cart.total().amount)
        return cart

    async def clear_cart(self, session_id: str) -> Cart:
        cart = await self.get_cart(session_id)
        cart.clear()
        await self.repository.save(cart)
        log_cart_operation(logger, "clear", session_id)
        return cart

    async def quote(self, session_id: str, schedule: Schedule, guests: int = 0) -> pricing.StayQuote:
        cart = await self.get_cart(session_id)
        return pricing.quote_stay(
            cart,
            schedule,
            guests,
            entrance_fee_per_guest=self.settings.ENTRANCE_FEE_PER_GUEST,
            downpayment_percent=self.settings.DOWNPAYMENT_PERCENT,
        )

    async def checkout(
        self,
        session_id: str,
        schedule: Schedule,
        customer: CustomerInfo,
        source: BookingSource = BookingSource.ONLINE,
        guest_count: int = 0,
        created_by: str = "SYSTEM",
    ) -> Reservation:
        """Submit the cart as a new reservation, then clear the cart.

        Walk-in bookings are priced over the whole stay with entrance fees and,
        being paid in full at the counter, are confirmed immediately with the
        whole total recorded as paid.
        """
        cart = await self.get_cart(session_id)
        order = cart.submit(schedule, downpayment_percent=self.settings.DOWNPAYMENT_PERCENT)

        if source == BookingSource.WALK_IN:
            quote = await self.quote(session_id, schedule, guest_count)
            reservation = Reservation.create(
                customer=customer,
                schedule=order.schedule,
                line_items=list(order.lines),
                total_amount=quote.grand_total,
                downpayment=quote.grand_total,
                source=source,
                guest_count=guest_count,
                created_by=created_by,
            )
        else:
            reservation = Reservation.from_order(order, customer, source, guest_count, created_by)

        while await self.reservation_repo.find_by_reference_code(reservation.reference_code):
            reservation.reference_code = Reservation.generate_reference_code()

        if source == BookingSource.WALK_IN:
            reservation.proof_of_payment_present = True
            command = reservation.transition_to(BookingStatus.CONFIRMED)
            reservation.payment_status = PaymentStatus.FULLY_PAID
            log_status_command(logger, str(reservation.reservation_id), BookingStatus.PENDING.value,
                               command.target_status.value, action="walk_in", actor=created_by)

        await self.reservation_repo.save(reservation)
        cart.clear()
        await self.repository.save(cart)
        log_cart_operation(logger, "checkout", session_id, total_minor=reservation.total_amount.amount,
                           reference_code=reservation.reference_code)
        return reservation


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(self, repository: ReservationRepository, settings: Optional[Settings] = None):
        self.repository = repository
        self.settings = settings or get_settings()

    async def get_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.repository.find_by_id(reservation_id)

    async def get_reservation_by_reference_code(self, code: str) -> Optional[Reservation]:
        return await self.repository.find_by_reference_code(code)

    async def list_reservations(
        self,
        bucket: Optional[Bucket] = None,
        status: Optional[BookingStatus] = None,
        search: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> List[Reservation]:
        """Reservations filtered by bucket, status and a name/reference search"""
        if created_by is not None:
            reservations = await self.repository.find_by_customer(created_by)
        else:
            reservations = await self.repository.find_all()

        if bucket is not None:
            reservations = [r for r in reservations if lifecycle.classify_bucket(r.status) == bucket]
        if status is not None:
            reservations = [r for r in reservations if r.status == status]
        if search:
            query = search.strip().lower()
            reservations = [
                r for r in reservations
                if query in r.customer.name.lower() or query in r.reference_code.lower()
            ]
        return sorted(reservations, key=lambda r: r.created_at, reverse=True)

    async def get_pricing(self, reservation_id: UUID) -> pricing.PricingBreakdown:
        reservation = await self._require(reservation_id)
        return pricing.compute_breakdown(reservation, self.settings.DOWNPAYMENT_PERCENT)

    async def get_allowed_actions(self, reservation_id: UUID) -> FrozenSet[ActionTag]:
        reservation = await self._require(reservation_id)
        return lifecycle.allowed_actions(reservation.status)

    async def perform_action(
        self,
        reservation_id: UUID,
        action: ActionTag,
        actor: str = "SYSTEM",
    ) -> Tuple[Reservation, Optional[StatusUpdateCommand]]:
        """Run a UI action against a reservation.

        Returns the reservation and the status-update command for the
        persistence layer, or None when the action does not change status.
        """
        reservation = await self._require(reservation_id)
        current = reservation.status
        try:
            command = reservation.perform(action)
        except ReservationError as e:
            log_status_command(logger, str(reservation_id), current.value,
                               str(lifecycle.ACTION_TARGETS.get(action, current).value),
                               action=action.value, actor=actor, error=e.message)
            raise

        if command is not None:
            await self.repository.update(reservation)
            log_status_command(logger, str(reservation_id), current.value,
                               command.target_status.value, action=action.value, actor=actor)
        return reservation, command

    async def change_status(
        self,
        reservation_id: UUID,
        target: BookingStatus,
        actor: str = "SYSTEM",
    ) -> StatusUpdateCommand:
        reservation = await self._require(reservation_id)
        current = reservation.status
        try:
            command = reservation.transition_to(target)
        except ReservationError as e:
            log_status_command(logger, str(reservation_id), current.value, target.value,
                               actor=actor, error=e.message)
            raise
        await self.repository.update(reservation)
        log_status_command(logger, str(reservation_id), current.value, target.value, actor=actor)
        return command

    async def attach_proof_of_payment(self, reservation_id: UUID) -> Reservation:
        reservation = await self._require(reservation_id)
        reservation.attach_proof_of_payment()
        return await self.repository.update(reservation)

    async def quote_extension(self, reservation_id: UUID, hours: int) -> Money:
        reservation = await self._require(reservation_id)
        lifecycle.target_for_action(reservation.status, ActionTag.EXTEND)
        return self._extension_fee(reservation, hours)

    async def extend_reservation(
        self,
        reservation_id: UUID,
        hours: int,
        actor: str = "SYSTEM",
    ) -> ExtensionRecord:
        """Add late check-out hours, charged at the hourly extension rate"""
        reservation = await self._require(reservation_id)
        lifecycle.target_for_action(reservation.status, ActionTag.EXTEND)
        fee = self._extension_fee(reservation, hours)
        record = reservation.extend(hours, fee, description=f"Extension (+{hours}hrs)")
        await self.repository.update(reservation)
        logger.info(
            "Extended reservation %s by %s hours for %s minor units | actor=%s",
            reservation.reference_code, hours, fee.amount, actor,
        )
        return record

    async def import_record(self, record: Mapping[str, Any], created_by: str = "SYSTEM") -> Reservation:
        """Store a transaction record received from the booking backend"""
        reservation = reservation_from_record(record, self.settings.CURRENCY, created_by)
        existing = await self.repository.find_by_reference_code(reservation.reference_code)
        if existing is not None:
            reservation.reservation_id = existing.reservation_id
            reservation.created_at = existing.created_at
            reservation.version = existing.version + 1
        return await self.repository.save(reservation)

    def _extension_fee(self, reservation: Reservation, hours: int) -> Money:
        return pricing.quote_extension(
            reservation.total_amount,
            hours,
            hourly_divisor=self.settings.EXTENSION_HOURLY_DIVISOR,
            rounding_step=self.settings.EXTENSION_ROUNDING_STEP,
        )

    async def _require(self, reservation_id: UUID) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            raise NotFoundError("Reservation", reservation_id)
        return reservation
