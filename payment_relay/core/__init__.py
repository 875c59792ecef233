"""Core status cache and payment event model."""
from .events import PaymentEvent, PaymentEventKind, classify_event
from .exceptions import (
    ApiError,
    CheckoutError,
    PaymentNotFoundError,
    PaymentRelayError,
    WebhookVerificationError,
)
from .status_store import StatusRecord, StatusStore, utc_now_iso

__all__ = [
    "ApiError",
    "CheckoutError",
    "PaymentEvent",
    "PaymentEventKind",
    "PaymentNotFoundError",
    "PaymentRelayError",
    "StatusRecord",
    "StatusStore",
    "WebhookVerificationError",
    "classify_event",
    "utc_now_iso",
]
