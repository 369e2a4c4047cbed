"""In-Memory Repository Implementations"""
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from domain.entities import Cart, Reservation
from domain.errors import NotFoundError
from domain.repositories import AmenityRepository, CartRepository, ReservationRepository
from domain.value_objects import Amenity


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[reservation.reservation_id] = reservation
        return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        return self._storage.get(reservation_id)

    async def find_by_reference_code(self, code: str) -> Optional[Reservation]:
        for reservation in self._storage.values():
            if reservation.reference_code == code:
                return reservation
        return None

    async def find_by_customer(self, created_by: str) -> List[Reservation]:
        return [r for r in self._storage.values() if r.created_by == created_by]

    async def find_all(self) -> List[Reservation]:
        return list(self._storage.values())

    async def update(self, reservation: Reservation) -> Reservation:
        if reservation.reservation_id in self._storage:
            self._storage[reservation.reservation_id] = reservation
            return reservation
        raise NotFoundError("Reservation", reservation.reservation_id)


class InMemoryCartRepository(CartRepository):
    """In-memory implementation of CartRepository"""

    def __init__(self):
        self._storage: Dict[str, Cart] = {}

    async def find_by_session(self, session_id: str) -> Optional[Cart]:
        return self._storage.get(session_id)

    async def save(self, cart: Cart) -> Cart:
        self._storage[cart.session_id] = cart
        return cart

    async def delete(self, session_id: str) -> bool:
        if session_id in self._storage:
            del self._storage[session_id]
            return True
        return False


class InMemoryAmenityRepository(AmenityRepository):
    """In-memory implementation of AmenityRepository"""

    def __init__(self, amenities: Optional[Iterable[Amenity]] = None):
        self._storage: Dict[str, Amenity] = {a.amenity_id: a for a in amenities or ()}

    async def save(self, amenity: Amenity) -> Amenity:
        self._storage[amenity.amenity_id] = amenity
        return amenity

    async def find_by_id(self, amenity_id: str) -> Optional[Amenity]:
        return self._storage.get(amenity_id)

    async def find_all(self) -> List[Amenity]:
        return sorted(self._storage.values(), key=lambda a: a.name)
