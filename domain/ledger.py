"""Extension ledger.

Extension rows reach the core in several shapes: the front desk's extend form,
the `extensions` relation and the JSON-encoded `extension_history` column all
name their fields differently. normalize() folds them into ExtensionRecord
using the alias tables below; the first alias holding a non-empty value wins.
None, "" and numeric zero (0, 0.0) count as empty and fall through to the
next alias. Any string, "0" included, is a value: {"hours": "0", "extended_hours": 3}
records zero hours, the way the booking screens read these rows.

Costs in raw rows are major-unit decimals ("500.00"). Malformed numbers never
raise: they become zero and a warning is logged, so one bad row cannot block
a whole transaction list from rendering.
"""
import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel

from domain.errors import ValidationError
from domain.value_objects import DEFAULT_CURRENCY, ExtensionRecord, Money
from infrastructure.logging import get_logger

logger = get_logger(__name__)

HOURS_ALIASES = ("hours", "extended_hours", "duration", "extension_hours", "extension_value")
COST_ALIASES = ("additional_cost", "price", "total_price", "amount", "additional_amount")
TIMESTAMP_ALIASES = ("timestamp", "created_at", "extended_at")
DESCRIPTION_ALIASES = ("description", "name")

RawExtension = Union[ExtensionRecord, Mapping[str, Any]]


class ExtensionSummary(BaseModel):
    """Aggregated extension totals"""
    count: int = 0
    total_hours: int = 0
    total_cost: Money

    class Config:
        frozen = True


def normalize(raw: Any, currency: str = DEFAULT_CURRENCY) -> ExtensionRecord:
    """Coerce a raw extension row into an ExtensionRecord"""
    if isinstance(raw, ExtensionRecord):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning("Discarding extension row of type %s", type(raw).__name__)
        return ExtensionRecord(additional_cost=Money.zero(currency))

    hours_value = _first_present(raw, HOURS_ALIASES)
    cost_value = _first_present(raw, COST_ALIASES)

    hours = _parse_hours(hours_value)
    cost = _parse_cost(cost_value, currency)
    timestamp = _parse_timestamp(_first_present(raw, TIMESTAMP_ALIASES))
    description = _first_present(raw, DESCRIPTION_ALIASES)

    return ExtensionRecord(
        hours=hours,
        additional_cost=cost,
        timestamp=timestamp,
        description=str(description) if description is not None else None,
    )


def aggregate(records: Iterable[RawExtension], currency: str = DEFAULT_CURRENCY) -> ExtensionSummary:
    """Sum hours and cost over the given extensions"""
    count = 0
    total_hours = 0
    total_cost = Money.zero(currency)
    for raw in records:
        record = normalize(raw, currency)
        count += 1
        total_hours += record.hours
        total_cost = total_cost.add(record.additional_cost)
    return ExtensionSummary(count=count, total_hours=total_hours, total_cost=total_cost)


def parse_history(raw: Any, currency: str = DEFAULT_CURRENCY) -> List[ExtensionRecord]:
    """Decode an extension history column: a list, a JSON string, or nothing"""
    if raw is None or raw == "":
        return []
    items = raw
    if isinstance(raw, (str, bytes)):
        try:
            items = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring undecodable extension history")
            return []
    if not isinstance(items, list):
        return []
    return [normalize(item, currency) for item in items]


# ==================== PARSING HELPERS ====================
def _first_present(raw: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    for alias in aliases:
        value = raw.get(alias)
        if value not in (None, "", 0):
            return value
    return None


def _parse_hours(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        hours = value
    else:
        # integer prefix, "3.7" -> 3, "2hrs" -> 2
        text = str(value).strip()
        digits = ""
        for index, char in enumerate(text):
            if char.isdigit() or (index == 0 and char in "+-"):
                digits += char
            else:
                break
        try:
            hours = int(digits)
        except ValueError:
            logger.warning("Extension hours %r are not a number, using 0", value)
            return 0
    if hours < 0:
        logger.warning("Negative extension hours %r, using 0", value)
        return 0
    return hours


def _parse_cost(value: Any, currency: str) -> Money:
    if value is None or isinstance(value, bool):
        return Money.zero(currency)
    if isinstance(value, Money):
        return value
    try:
        major = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.warning("Extension cost %r is not a number, using 0", value)
        return Money.zero(currency)
    if not major.is_finite() or major < 0:
        logger.warning("Extension cost %r is out of range, using 0", value)
        return Money.zero(currency)
    try:
        return Money.from_major(major, currency)
    except ValidationError:
        logger.warning("Extension cost %r is out of range, using 0", value)
        return Money.zero(currency)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
