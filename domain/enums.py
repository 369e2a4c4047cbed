"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CHECKED_IN = "Checked-In"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    DECLINED = "Declined"


class Bucket(str, Enum):
    ACTIVE = "active"
    HISTORY = "history"


class ActionTag(str, Enum):
    REVIEW_PROOF = "review_proof"
    APPROVE = "approve"
    DECLINE = "decline"
    CHECK_IN = "check_in"
    CANCEL = "cancel"
    EXTEND = "extend"
    CHECK_OUT = "check_out"
    VIEW_RECEIPT = "view_receipt"


class BookingSource(str, Enum):
    ONLINE = "Online"
    WALK_IN = "Walk-In"


class PaymentStatus(str, Enum):
    PARTIAL = "Partial"
    FULLY_PAID = "Fully Paid"


class Role(str, Enum):
    CUSTOMER = "customer"
    RECEPTIONIST = "receptionist"
    OWNER = "owner"
