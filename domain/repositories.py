"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from domain.entities import Cart, Reservation
from domain.value_objects import Amenity


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate.

    Reservations are archived once terminal, never deleted.
    """

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_reference_code(self, code: str) -> Optional[Reservation]:
        """Find reservation by reference code"""
        pass

    @abstractmethod
    async def find_by_customer(self, created_by: str) -> List[Reservation]:
        """Find reservations booked by a user"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass


class CartRepository(ABC):
    """Repository interface for Cart Aggregate, one cart per session"""

    @abstractmethod
    async def find_by_session(self, session_id: str) -> Optional[Cart]:
        """Find the cart of a session"""
        pass

    @abstractmethod
    async def save(self, cart: Cart) -> Cart:
        """Save cart"""
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Drop a session's cart"""
        pass


class AmenityRepository(ABC):
    """Repository interface for the amenity catalogue"""

    @abstractmethod
    async def save(self, amenity: Amenity) -> Amenity:
        """Save amenity"""
        pass

    @abstractmethod
    async def find_by_id(self, amenity_id: str) -> Optional[Amenity]:
        """Find amenity by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Amenity]:
        """Find all amenities"""
        pass
