"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from typing import List, Optional

from domain.enums import BookingSource, Role


# ============================================================================
# SHARED SCHEMAS
# ============================================================================

class MoneyResponse(BaseModel):
    """Money DTO, amount in minor units"""
    amount: int
    currency: str


# ============================================================================
# AMENITY SCHEMAS
# ============================================================================

class AmenityResponse(BaseModel):
    """Amenity response DTO"""
    amenity_id: str
    name: str
    price: MoneyResponse
    capacity: int
    slots_left: Optional[int] = None


# ============================================================================
# CART SCHEMAS
# ============================================================================

class AddCartItemRequest(BaseModel):
    """Add cart item request DTO"""
    amenity_id: str
    quantity: int = Field(ge=1, default=1)


class AdjustQuantityRequest(BaseModel):
    """Adjust quantity request DTO"""
    delta: int


class QuoteRequest(BaseModel):
    """Stay quote request DTO"""
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    guests: int = Field(ge=0, default=0)


class CheckoutRequest(BaseModel):
    """Checkout request DTO; customer fields default to the signed-in user"""
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    full_name: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    source: BookingSource = BookingSource.ONLINE
    num_guests: int = Field(ge=0, default=0)


class CartItemResponse(BaseModel):
    """Cart line response DTO"""
    amenity_id: str
    name: str
    unit_price: MoneyResponse
    quantity: int
    max_limit: Optional[int] = None
    capacity: int
    subtotal: MoneyResponse


class CartResponse(BaseModel):
    """Cart response DTO"""
    cart_id: UUID
    session_id: str
    items: List[CartItemResponse] = []
    item_count: int
    total: MoneyResponse
    downpayment: MoneyResponse
    modified_at: datetime
    version: int


class StayQuoteResponse(BaseModel):
    """Stay quote response DTO"""
    days: int
    guests: int
    amenities_total: MoneyResponse
    entrance_fee_total: MoneyResponse
    grand_total: MoneyResponse
    downpayment: MoneyResponse


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class ExtendReservationRequest(BaseModel):
    """Extend reservation request DTO"""
    hours: int = Field(ge=1)


class LineItemResponse(BaseModel):
    """Booked amenity response DTO"""
    amenity_id: Optional[str] = None
    amenity_name: str
    quantity: int
    unit_price: MoneyResponse
    subtotal: MoneyResponse


class ExtensionResponse(BaseModel):
    """Extension response DTO"""
    hours: int
    additional_cost: MoneyResponse
    timestamp: Optional[datetime] = None
    description: Optional[str] = None


class ExtensionQuoteResponse(BaseModel):
    """Extension fee quote DTO"""
    hours: int
    additional_cost: MoneyResponse


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    reference_code: str
    customer_name: str
    contact_number: Optional[str] = None
    email: Optional[str] = None
    check_in: datetime
    check_out: datetime
    status: str
    bucket: str
    payment_status: Optional[str] = None
    source: str
    proof_of_payment_present: bool
    guest_count: int
    line_items: List[LineItemResponse] = []
    extensions: List[ExtensionResponse] = []
    total_amount: MoneyResponse
    downpayment: Optional[MoneyResponse] = None
    allowed_actions: List[str] = []
    created_at: datetime
    modified_at: datetime
    created_by: str
    version: int


class PricingResponse(BaseModel):
    """Pricing breakdown DTO"""
    base_amount: MoneyResponse
    extension_cost: MoneyResponse
    total_amount: MoneyResponse
    downpayment: MoneyResponse
    balance: MoneyResponse
    is_fully_paid: bool
    payment_label: str
    inconsistent: bool


class StatusCommandResponse(BaseModel):
    """Status update command DTO"""
    reservation_id: UUID
    target_status: str
    issued_at: datetime


class ActionResultResponse(BaseModel):
    """Result of running an action"""
    reservation: ReservationResponse
    command: Optional[StatusCommandResponse] = None


class AllowedActionsResponse(BaseModel):
    """Allowed actions DTO"""
    reservation_id: UUID
    status: str
    bucket: str
    actions: List[str]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    username: Optional[str] = None


class UserResponse(BaseModel):
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role
    disabled: bool = False
