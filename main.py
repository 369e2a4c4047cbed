from fastapi import FastAPI, HTTPException, Depends, Body, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from uuid import UUID
from typing import Any, Dict, List, Optional

from api.schemas import (
    # Shared
    MoneyResponse, AmenityResponse,
    # Cart
    AddCartItemRequest, AdjustQuantityRequest, QuoteRequest, CheckoutRequest,
    CartItemResponse, CartResponse, StayQuoteResponse,
    # Reservation
    ExtendReservationRequest, LineItemResponse, ExtensionResponse, ExtensionQuoteResponse,
    ReservationResponse, PricingResponse, StatusCommandResponse, ActionResultResponse,
    AllowedActionsResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, get_current_staff_user, fake_users_db, get_user
from infrastructure.security import verify_password, create_access_token
from infrastructure.config import get_settings
from infrastructure.logging import configure_logging, set_correlation_id, clear_correlation_id, get_logger
from domain.auth import User

from application.services import AmenityService, CartService, ReservationService
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryCartRepository, InMemoryAmenityRepository
)
from domain import lifecycle
from domain.entities import Cart, Reservation
from domain.enums import ActionTag, BookingSource, BookingStatus, Bucket, PaymentStatus
from domain.errors import ErrorCode, ForbiddenError, NotFoundError, ReservationError
from domain.pricing import PricingBreakdown, StayQuote
from domain.value_objects import Amenity, CustomerInfo, Money, Schedule, StatusUpdateCommand

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Cart, pricing and booking lifecycle for resort amenity reservations",
    version="1.0.0"
)

# Amenity catalogue offered at the counter and online
DEFAULT_AMENITIES = [
    Amenity(amenity_id="cottage-small", name="Small Cottage", price=Money.from_major(500), capacity=6, slots_left=5),
    Amenity(amenity_id="cottage-large", name="Large Cottage", price=Money.from_major(1000), capacity=12, slots_left=3),
    Amenity(amenity_id="kubo", name="Kubo Hut", price=Money.from_major(350), capacity=4, slots_left=8),
    Amenity(amenity_id="function-hall", name="Function Hall", price=Money.from_major(5000), capacity=80, slots_left=1),
    Amenity(amenity_id="family-room", name="Family Room", price=Money.from_major(2500), capacity=6, slots_left=0),
]

# Initialize repositories
reservation_repo = InMemoryReservationRepository()
cart_repo = InMemoryCartRepository()
amenity_repo = InMemoryAmenityRepository(DEFAULT_AMENITIES)

# Dependency injection
def get_reservation_service() -> ReservationService:
    return ReservationService(reservation_repo, settings)

def get_cart_service() -> CartService:
    return CartService(cart_repo, amenity_repo, reservation_repo, settings)

def get_amenity_service() -> AmenityService:
    return AmenityService(amenity_repo)

# Actions a customer may run on their own booking
CUSTOMER_ACTIONS = frozenset({ActionTag.VIEW_RECEIPT, ActionTag.REVIEW_PROOF})

ERROR_STATUS_CODES: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.CURRENCY_MISMATCH: 400,
    ErrorCode.UNKNOWN_STATUS: 400,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.QUANTITY_LIMIT_EXCEEDED: 409,
    ErrorCode.DUPLICATE_ITEM: 409,
    ErrorCode.NEGATIVE_RESULT: 422,
}

# ============================================================================
# MIDDLEWARE & ERROR HANDLING
# ============================================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))
    try:
        response = await call_next(request)
    finally:
        clear_correlation_id()
    response.headers["X-Correlation-ID"] = correlation_id
    return response

@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    status_code = ERROR_STATUS_CODES.get(exc.code, 400)
    logger.info("%s %s -> %s %s", request.method, request.url.path, status_code, exc.code.value)
    return JSONResponse(status_code=status_code, content=exc.to_dict())

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus values with their bucket"""
    return {
        "values": [item.value for item in BookingStatus],
        "buckets": {item.value: lifecycle.classify_bucket(item).value for item in BookingStatus},
        "description": "Booking status values: Pending, Confirmed, Checked-In, Completed, Cancelled, Declined"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": user.username, "role": user.role.value})
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# AMENITY ENDPOINTS
# ============================================================================

@app.get("/api/amenities", response_model=List[AmenityResponse], tags=["Amenities"])
async def list_amenities(
    service: AmenityService = Depends(get_amenity_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the amenity catalogue, available ones first"""
    amenities = await service.list_amenities()
    return [_amenity_to_response(a) for a in amenities]

# ============================================================================
# CART ENDPOINTS
# ============================================================================

@app.get("/api/cart", response_model=CartResponse, tags=["Cart"])
async def get_cart(
    service: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the current user's cart"""
    cart = await service.get_cart(current_user.username)
    return _cart_to_response(cart)

@app.post("/api/cart/items", response_model=CartResponse, status_code=201, tags=["Cart"])
async def add_cart_item(
    request: AddCartItemRequest,
    service: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_active_user)
):
    """Add an amenity to the cart; adding one already there increases its quantity"""
    await service.add_item(current_user.username, request.amenity_id, request.quantity)
    cart = await service.get_cart(current_user.username)
    return _cart_to_response(cart)

@app.patch("/api/cart/items/{amenity_id}", response_model=CartResponse, tags=["Cart"])
async def adjust_cart_item(
    amenity_id: str,
    request: AdjustQuantityRequest,
    service: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_active_user)
):
    """Change a cart line's quantity by delta"""
    await service.adjust_quantity(current_user.username, amenity_id, request.delta)
    cart = await service.get_cart(current_user.username)
    return _cart_to_response(cart)

@app.delete("/api/cart/items/{amenity_id}", response_model=CartResponse, tags=["Cart"])
async def remove_cart_item(
    amenity_id: str,
    service: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_active_user)
):
    """Remove an amenity from the cart"""
    cart = await service.remove_item(current_user.username, amenity_id)
    return _cart_to_response(cart)

@app.delete("/api/cart", response_model=CartResponse, tags=["Cart"])
async def clear_cart(
    service: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_active_user)
):
    """Empty the cart"""
    cart = await service.clear_cart(current_user.username)
    return _cart_to_response(cart)

@app.post("/api/cart/quote", response_model=StayQuoteResponse, tags=["Cart"])
async def quote_cart(
    request: QuoteRequest,
    service: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_active_user)
):
    """Price the cart over the stay, with entrance fees"""
    schedule = Schedule(check_in=request.check_in, check_out=request.check_out)
    quote = await service.quote(current_user.username, schedule, request.guests)
    return _quote_to_response(quote)

@app.post("/api/cart/checkout", response_model=ReservationResponse, status_code=201, tags=["Cart"])
async def checkout_cart(
    request: CheckoutRequest,
    service: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_active_user)
):
    """Submit the cart as a reservation and clear it"""
    if request.source == BookingSource.WALK_IN and not current_user.is_staff():
        raise ForbiddenError("Walk-in bookings are entered by staff")

    customer = CustomerInfo(
        name=request.full_name or current_user.full_name or current_user.username,
        contact_number=request.contact_number or current_user.contact_number,
        email=request.email or current_user.email,
    )
    reservation = await service.checkout(
        session_id=current_user.username,
        schedule=Schedule(check_in=request.check_in, check_out=request.check_out),
        customer=customer,
        source=request.source,
        guest_count=request.num_guests,
        created_by=current_user.username,
    )
    return _reservation_to_response(reservation)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    bucket: Optional[Bucket] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservations; customers only see their own"""
    reservations = await service.list_reservations(
        bucket=bucket,
        status=lifecycle.parse_status(status) if status else None,
        search=search,
        created_by=None if current_user.is_staff() else current_user.username,
    )
    return [_reservation_to_response(r) for r in reservations]

@app.post("/api/reservations/import", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def import_reservation(
    record: Dict[str, Any] = Body(...),
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Store a raw transaction record from the booking backend"""
    reservation = await service.import_record(record, created_by=current_user.username)
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    reservation = await _visible_reservation(service, reservation_id, current_user)
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}/pricing", response_model=PricingResponse, tags=["Reservations"])
async def get_reservation_pricing(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the pricing breakdown of a reservation"""
    await _visible_reservation(service, reservation_id, current_user)
    breakdown = await service.get_pricing(reservation_id)
    return _pricing_to_response(breakdown)

@app.get("/api/reservations/{reservation_id}/actions", response_model=AllowedActionsResponse, tags=["Reservations"])
async def get_reservation_actions(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the actions available for the reservation's status"""
    reservation = await _visible_reservation(service, reservation_id, current_user)
    actions = await service.get_allowed_actions(reservation_id)
    return AllowedActionsResponse(
        reservation_id=reservation.reservation_id,
        status=reservation.status.value,
        bucket=reservation.bucket.value,
        actions=sorted(a.value for a in actions),
    )

@app.post("/api/reservations/{reservation_id}/actions/{action}", response_model=ActionResultResponse, tags=["Reservations"])
async def perform_reservation_action(
    reservation_id: UUID,
    action: ActionTag,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Run an action; status-changing actions are staff only"""
    if action not in CUSTOMER_ACTIONS and not current_user.is_staff():
        raise ForbiddenError(f"Only staff can {action.value} a booking")
    await _visible_reservation(service, reservation_id, current_user)
    reservation, command = await service.perform_action(reservation_id, action, actor=current_user.username)
    return ActionResultResponse(
        reservation=_reservation_to_response(reservation),
        command=_command_to_response(command) if command else None,
    )

@app.post("/api/reservations/{reservation_id}/proof", response_model=ReservationResponse, tags=["Reservations"])
async def attach_proof_of_payment(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Mark the downpayment proof as received"""
    await _visible_reservation(service, reservation_id, current_user)
    reservation = await service.attach_proof_of_payment(reservation_id)
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}/extension-quote", response_model=ExtensionQuoteResponse, tags=["Reservations"])
async def quote_reservation_extension(
    reservation_id: UUID,
    hours: int = Query(..., ge=1),
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Get the late check-out fee for the given hours"""
    fee = await service.quote_extension(reservation_id, hours)
    return ExtensionQuoteResponse(hours=hours, additional_cost=_money(fee))

@app.post("/api/reservations/{reservation_id}/extensions", response_model=ReservationResponse, tags=["Reservations"])
async def extend_reservation(
    reservation_id: UUID,
    request: ExtendReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Extend a checked-in stay"""
    await service.extend_reservation(reservation_id, request.hours, actor=current_user.username)
    reservation = await service.get_reservation(reservation_id)
    return _reservation_to_response(reservation)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

async def _visible_reservation(service: ReservationService, reservation_id: UUID, user: User) -> Reservation:
    """Load a reservation the user may see; staff see every booking"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise NotFoundError("Reservation", reservation_id)
    if not user.is_staff() and reservation.created_by != user.username:
        raise ForbiddenError("You can only view your own bookings")
    return reservation

def _money(money: Money) -> MoneyResponse:
    return MoneyResponse(amount=money.amount, currency=money.currency)

def _amenity_to_response(amenity: Amenity) -> AmenityResponse:
    """Convert Amenity value object to AmenityResponse"""
    return AmenityResponse(
        amenity_id=amenity.amenity_id,
        name=amenity.name,
        price=_money(amenity.price),
        capacity=amenity.capacity,
        slots_left=amenity.slots_left
    )

def _cart_to_response(cart: Cart) -> CartResponse:
    """Convert Cart entity to CartResponse"""
    return CartResponse(
        cart_id=cart.cart_id,
        session_id=cart.session_id,
        items=[
            CartItemResponse(
                amenity_id=line.amenity_id,
                name=line.name,
                unit_price=_money(line.unit_price),
                quantity=line.quantity,
                max_limit=line.max_limit,
                capacity=line.capacity,
                subtotal=_money(line.subtotal())
            )
            for line in cart.items
        ],
        item_count=cart.item_count(),
        total=_money(cart.total()),
        downpayment=_money(cart.downpayment(settings.DOWNPAYMENT_PERCENT)),
        modified_at=cart.modified_at,
        version=cart.version
    )

def _quote_to_response(quote: StayQuote) -> StayQuoteResponse:
    return StayQuoteResponse(
        days=quote.days,
        guests=quote.guests,
        amenities_total=_money(quote.amenities_total),
        entrance_fee_total=_money(quote.entrance_fee_total),
        grand_total=_money(quote.grand_total),
        downpayment=_money(quote.downpayment)
    )

def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        reference_code=reservation.reference_code,
        customer_name=reservation.customer.name,
        contact_number=reservation.customer.contact_number,
        email=reservation.customer.email,
        check_in=reservation.schedule.check_in,
        check_out=reservation.schedule.check_out,
        status=reservation.status.value,
        bucket=reservation.bucket.value,
        payment_status=reservation.payment_status.value if reservation.payment_status else None,
        source=reservation.source.value,
        proof_of_payment_present=reservation.proof_of_payment_present,
        guest_count=reservation.guest_count,
        line_items=[
            LineItemResponse(
                amenity_id=line.amenity_id,
                amenity_name=line.amenity_name,
                quantity=line.quantity,
                unit_price=_money(line.unit_price),
                subtotal=_money(line.subtotal())
            )
            for line in reservation.line_items
        ],
        extensions=[
            ExtensionResponse(
                hours=ext.hours,
                additional_cost=_money(ext.additional_cost),
                timestamp=ext.timestamp,
                description=ext.description
            )
            for ext in reservation.extensions
        ],
        total_amount=_money(reservation.total_amount),
        downpayment=_money(reservation.downpayment) if reservation.downpayment else None,
        allowed_actions=sorted(a.value for a in reservation.available_actions()),
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        created_by=reservation.created_by,
        version=reservation.version
    )

def _pricing_to_response(breakdown: PricingBreakdown) -> PricingResponse:
    """Convert PricingBreakdown to PricingResponse"""
    return PricingResponse(
        base_amount=_money(breakdown.base_amount),
        extension_cost=_money(breakdown.extension_cost),
        total_amount=_money(breakdown.total_amount),
        downpayment=_money(breakdown.downpayment),
        balance=_money(breakdown.balance),
        is_fully_paid=breakdown.is_fully_paid,
        payment_label=(PaymentStatus.FULLY_PAID if breakdown.is_fully_paid else PaymentStatus.PARTIAL).value,
        inconsistent=breakdown.inconsistent
    )

def _command_to_response(command: StatusUpdateCommand) -> StatusCommandResponse:
    return StatusCommandResponse(
        reservation_id=command.reservation_id,
        target_status=command.target_status.value,
        issued_at=command.issued_at
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
