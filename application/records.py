"""Mapping of raw transaction records into Reservation aggregates.

Records arrive from the booking backend with its own field names and with
money as major-unit decimals. Extension rows are normalized by the ledger and
never fail the import; every other malformed field raises ValidationError or
UnknownStatusError, including values the aggregate's own models reject
(a negative guest count, a customer name that is not text).
"""
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from domain import ledger
from domain.entities import Reservation
from domain.enums import BookingSource, PaymentStatus
from domain.errors import ValidationError
from domain.lifecycle import INITIAL_STATUS, parse_status
from domain.value_objects import CustomerInfo, Money, ReservationLineItem, Schedule


def reservation_from_record(
    record: Mapping[str, Any],
    currency: str = "PHP",
    created_by: str = "SYSTEM",
) -> Reservation:
    """Build a Reservation from a backend transaction record"""
    if not isinstance(record, Mapping):
        raise ValidationError("Transaction record must be an object")
    try:
        return _build_reservation(record, currency, created_by)
    except PydanticValidationError as e:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in e.errors()})
        raise ValidationError(
            "Invalid transaction record",
            details={"fields": ", ".join(fields)},
        )


def _build_reservation(record: Mapping[str, Any], currency: str, created_by: str) -> Reservation:
    items = record.get("reservations") or []
    if not isinstance(items, list) or not items:
        raise ValidationError("Transaction has no booked amenities")
    if not all(isinstance(item, Mapping) for item in items):
        raise ValidationError("Transaction has a malformed amenity row")

    line_items = [_line_item(item, currency) for item in items]
    schedule = Schedule(
        check_in=_parse_datetime(items[0].get("check_in_date") or record.get("check_in_date")),
        check_out=_parse_datetime(items[0].get("check_out_date") or record.get("check_out_date")),
    ).ensure_valid()

    extensions = ledger.parse_history(record.get("extension_history"), currency)
    extensions += ledger.parse_history(record.get("extensions"), currency)

    if record.get("total_amount") is not None:
        total_amount = Money.from_major(record["total_amount"], currency)
    else:
        total_amount = Money.zero(currency)
        for line in line_items:
            total_amount = total_amount.add(line.subtotal())
        for extension in extensions:
            total_amount = total_amount.add(extension.additional_cost)

    downpayment: Optional[Money] = None
    if record.get("downpayment") not in (None, ""):
        downpayment = Money.from_major(record["downpayment"], currency)

    customer_name = record.get("customer_name") or record.get("full_name")
    if not customer_name:
        raise ValidationError("Transaction has no customer name")

    fields: Dict[str, Any] = {
        "customer": CustomerInfo(
            name=customer_name,
            contact_number=record.get("contact_number"),
            email=record.get("email"),
        ),
        "schedule": schedule,
        "line_items": line_items,
        "extensions": extensions,
        "total_amount": total_amount,
        "downpayment": downpayment,
        "status": parse_status(record.get("booking_status") or record.get("status") or INITIAL_STATUS),
        "payment_status": _payment_status(record.get("payment_status")),
        "source": _source(record.get("booking_type") or record.get("source")),
        "proof_of_payment_present": bool(record.get("proof_of_payment")),
        "guest_count": _int(record.get("num_guest")),
        "created_by": created_by,
    }
    if record.get("transaction_ref"):
        fields["reference_code"] = str(record["transaction_ref"])
    else:
        fields["reference_code"] = Reservation.generate_reference_code()
    return Reservation(**fields)


def _line_item(item: Mapping[str, Any], currency: str) -> ReservationLineItem:
    name = item.get("amenity_name")
    if not name:
        raise ValidationError("Booked amenity has no name")
    quantity = _int(item.get("quantity"))
    if quantity < 1:
        raise ValidationError(f"Invalid quantity for {name}")
    price = item.get("price", item.get("amenity_price"))
    if price is None:
        raise ValidationError(f"No price for {name}")
    amenity_id = item.get("amenity_id")
    return ReservationLineItem(
        amenity_id=str(amenity_id) if amenity_id is not None else None,
        amenity_name=name,
        quantity=quantity,
        unit_price=Money.from_major(price, currency),
    )


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def _payment_status(value: Any) -> Optional[PaymentStatus]:
    for status in PaymentStatus:
        if isinstance(value, str) and value.strip().lower() == status.value.lower():
            return status
    return None


def _source(value: Any) -> BookingSource:
    if isinstance(value, str) and value.strip().lower().replace(" ", "-") in ("walk-in", "walkin"):
        return BookingSource.WALK_IN
    return BookingSource.ONLINE


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
