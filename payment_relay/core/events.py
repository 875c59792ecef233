"""
Payment event kinds and the Stripe event types that map onto them.

Each kind corresponds to exactly one status tag written to the store. Event
types absent from the table are observed but never change a payment's status.
"""
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel


class PaymentEventKind(Enum):
    """Payment state change reported by the processor, valued by its status tag."""

    SUCCEEDED = "success"
    FAILED = "failed"
    PROCESSING = "processing"
    CANCELLED = "cancelled"

    @property
    def status(self) -> str:
        return self.value


STRIPE_EVENT_KINDS: Dict[str, PaymentEventKind] = {
    "payment_intent.succeeded": PaymentEventKind.SUCCEEDED,
    "payment_intent.payment_failed": PaymentEventKind.FAILED,
    "payment_intent.processing": PaymentEventKind.PROCESSING,
    "payment_intent.canceled": PaymentEventKind.CANCELLED,
    "checkout.session.completed": PaymentEventKind.SUCCEEDED,
    "checkout.session.async_payment_succeeded": PaymentEventKind.SUCCEEDED,
    "checkout.session.async_payment_failed": PaymentEventKind.FAILED,
    "checkout.session.expired": PaymentEventKind.CANCELLED,
}

KNOWN_STATUSES = frozenset(kind.status for kind in PaymentEventKind)
OTHER_STATUS = "other"


def status_metric_label(status: str) -> str:
    """Collapse free-text statuses into a bounded set of metric label values."""
    return status if status in KNOWN_STATUSES else OTHER_STATUS


# checkout.session.completed fires before delayed payment methods settle
SETTLED_CHECKOUT_PAYMENT_STATUSES = frozenset({"paid", "no_payment_required"})


def classify_event(event_type: str, obj: Mapping[str, Any]) -> Optional[PaymentEventKind]:
    """
    Map a Stripe event type and its data object to a payment event kind.

    Args:
        event_type: Stripe event type (e.g. 'payment_intent.succeeded')
        obj: The event's ``data.object``

    Returns:
        Optional[PaymentEventKind]: None for event types that carry no status
    """
    kind = STRIPE_EVENT_KINDS.get(event_type)
    if event_type == "checkout.session.completed":
        if obj.get("payment_status") not in SETTLED_CHECKOUT_PAYMENT_STATUSES:
            return PaymentEventKind.PROCESSING
    return kind


class PaymentEvent(BaseModel):
    """A verified processor event reduced to what the relay dispatches on."""

    event_id: Optional[str] = None
    event_type: str
    kind: Optional[PaymentEventKind] = None
    payment_id: Optional[str] = None
    payload: Dict[str, Any]

    @classmethod
    def from_envelope(cls, envelope: Mapping[str, Any]) -> "PaymentEvent":
        """Build from a Stripe event envelope (``{id, type, data: {object}}``)."""
        data = envelope.get("data")
        obj = data.get("object") if isinstance(data, Mapping) else None
        if not isinstance(obj, Mapping):
            obj = {}

        event_type = str(envelope.get("type") or "")
        payment_id = obj.get("id")
        return cls(
            event_id=envelope.get("id"),
            event_type=event_type,
            kind=classify_event(event_type, obj),
            payment_id=str(payment_id) if payment_id else None,
            payload=dict(envelope),
        )
