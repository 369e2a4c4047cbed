"""Booking lifecycle: buckets, allowed actions and status transitions"""
from typing import Any, Dict, FrozenSet, Optional
from uuid import UUID

from domain.enums import ActionTag, BookingStatus, Bucket
from domain.errors import InvalidTransitionError, UnknownStatusError
from domain.value_objects import StatusUpdateCommand

INITIAL_STATUS = BookingStatus.PENDING

TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.DECLINED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CHECKED_IN, BookingStatus.CANCELLED}),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.DECLINED: frozenset(),
}

BUCKETS: Dict[BookingStatus, Bucket] = {
    BookingStatus.PENDING: Bucket.ACTIVE,
    BookingStatus.CONFIRMED: Bucket.ACTIVE,
    BookingStatus.CHECKED_IN: Bucket.ACTIVE,
    BookingStatus.COMPLETED: Bucket.HISTORY,
    BookingStatus.CANCELLED: Bucket.HISTORY,
    BookingStatus.DECLINED: Bucket.HISTORY,
}

ACTIONS: Dict[BookingStatus, FrozenSet[ActionTag]] = {
    BookingStatus.PENDING: frozenset({ActionTag.REVIEW_PROOF, ActionTag.APPROVE, ActionTag.DECLINE}),
    BookingStatus.CONFIRMED: frozenset({ActionTag.CHECK_IN, ActionTag.CANCEL}),
    BookingStatus.CHECKED_IN: frozenset({ActionTag.EXTEND, ActionTag.CHECK_OUT}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.DECLINED: frozenset(),
}

# Available in every status
UNIVERSAL_ACTIONS: FrozenSet[ActionTag] = frozenset({ActionTag.VIEW_RECEIPT})

# Actions that move the booking; the rest leave the status as is
ACTION_TARGETS: Dict[ActionTag, BookingStatus] = {
    ActionTag.APPROVE: BookingStatus.CONFIRMED,
    ActionTag.DECLINE: BookingStatus.DECLINED,
    ActionTag.CHECK_IN: BookingStatus.CHECKED_IN,
    ActionTag.CANCEL: BookingStatus.CANCELLED,
    ActionTag.CHECK_OUT: BookingStatus.COMPLETED,
}

# Spellings used by older screens and records
STATUS_ALIASES: Dict[str, BookingStatus] = {
    "paid": BookingStatus.CONFIRMED,
    "check-in": BookingStatus.CHECKED_IN,
    "checked in": BookingStatus.CHECKED_IN,
    "checked_in": BookingStatus.CHECKED_IN,
    "checkout": BookingStatus.COMPLETED,
    "check-out": BookingStatus.COMPLETED,
}


def parse_status(raw: Any) -> BookingStatus:
    """Resolve a status from the enum, its value, its name or a legacy spelling.

    Raises UnknownStatusError for anything outside the closed set.
    """
    if isinstance(raw, BookingStatus):
        return raw
    if not isinstance(raw, str):
        raise UnknownStatusError(raw)
    text = raw.strip()
    for status in BookingStatus:
        if text.lower() in (status.value.lower(), status.name.lower()):
            return status
    try:
        return STATUS_ALIASES[text.lower()]
    except KeyError:
        raise UnknownStatusError(raw)


def classify_bucket(status: Any) -> Bucket:
    return BUCKETS[_require_status(status)]


def is_terminal(status: BookingStatus) -> bool:
    return not TRANSITIONS[_require_status(status)]


def allowed_actions(status: Any) -> FrozenSet[ActionTag]:
    return ACTIONS[_require_status(status)] | UNIVERSAL_ACTIONS


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return _require_status(target) in TRANSITIONS[_require_status(current)]


def validate_transition(current: BookingStatus, target: BookingStatus) -> BookingStatus:
    """Return target if the move is legal, else raise InvalidTransitionError"""
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
    return target


def target_for_action(status: BookingStatus, action: ActionTag) -> Optional[BookingStatus]:
    """Status an action leads to, or None for actions that keep the status.

    Raises InvalidTransitionError when the action is not allowed in status.
    """
    if action not in allowed_actions(status):
        raise InvalidTransitionError(status, action)
    target = ACTION_TARGETS.get(action)
    if target is not None:
        validate_transition(status, target)
    return target


def plan_transition(reservation_id: UUID, current: BookingStatus, target: BookingStatus) -> StatusUpdateCommand:
    validate_transition(current, target)
    return StatusUpdateCommand(reservation_id=reservation_id, target_status=target)


def _require_status(status: Any) -> BookingStatus:
    if not isinstance(status, BookingStatus):
        raise UnknownStatusError(status)
    return status
