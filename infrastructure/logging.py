"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helpers for cart and booking-status logging

Usage:
    from infrastructure.logging import get_logger, set_correlation_id

    # In middleware:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Cart updated", extra={"session_id": "..."})
"""
import logging
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current context, generating one if needed"""
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes each line with the correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"
        base = super().format(record)
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger once"""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support"""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def log_status_command(
    logger: logging.Logger,
    reservation_id: str,
    current_status: str,
    target_status: str,
    *,
    action: Optional[str] = None,
    actor: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """Log a booking status change (or a rejected attempt)."""
    context: Dict[str, Any] = {
        "reservation_id": reservation_id,
        "current_status": current_status,
        "target_status": target_status,
    }
    if action:
        context["action"] = action
    if actor:
        context["actor"] = actor
    if error:
        context["error"] = error

    message = f"Status change: {reservation_id} {current_status} -> {target_status}"
    if action:
        message += f" | action={action}"
    if actor:
        message += f" | actor={actor}"

    if error:
        logger.warning(f"{message} | rejected: {error}", extra=context)
    else:
        logger.info(message, extra=context)


def log_cart_operation(
    logger: logging.Logger,
    operation: str,
    session_id: str,
    *,
    amenity_id: Optional[str] = None,
    quantity: Optional[int] = None,
    total_minor: Optional[int] = None,
    error: Optional[str] = None,
    **extra: Any,
) -> None:
    """Log a cart mutation with structured context."""
    context: Dict[str, Any] = {"operation": operation, "session_id": session_id}
    if amenity_id:
        context["amenity_id"] = amenity_id
    if quantity is not None:
        context["quantity"] = quantity
    if total_minor is not None:
        context["total_minor"] = total_minor
    if error:
        context["error"] = error
    context.update(extra)

    msg_parts = [f"Cart operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")
    message = " | ".join(msg_parts)

    if error:
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
