"""
Stripe webhook receiver.

Implements:
- Webhook signature verification (delegated to the Stripe SDK)
- A generic payload observer that sees every verified event
- One handler per payment event kind, each writing one status record
"""
import json
from typing import Any, Callable, Dict, Mapping, Optional

import stripe
import structlog
from pydantic import BaseModel

from payment_relay.config import Settings
from payment_relay.core.events import PaymentEvent, PaymentEventKind
from payment_relay.core.exceptions import WebhookVerificationError
from payment_relay.core.status_store import StatusRecord, StatusStore, utc_now_iso
from payment_relay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

RECORDED = "recorded"
IGNORED = "ignored"


class WebhookResult(BaseModel):
    """Outcome of processing one verified event."""

    event_id: Optional[str] = None
    event_type: str
    status: str
    payment_id: Optional[str] = None
    payment_status: Optional[str] = None


class WebhookReceiver:
    """
    Verifies Stripe events and turns payment events into status records.

    Every PaymentEventKind must have a handler; construction fails otherwise
    so a new kind cannot be silently dropped.
    """

    def __init__(self, store: StatusStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.handlers = self._build_handlers()
        missing = set(PaymentEventKind) - set(self.handlers)
        if missing:
            raise TypeError(
                f"No webhook handler for payment event kinds: {sorted(k.name for k in missing)}"
            )

    def _build_handlers(self) -> Dict[PaymentEventKind, Callable[[PaymentEvent], WebhookResult]]:
        return {
            PaymentEventKind.SUCCEEDED: self.on_payment_succeeded,
            PaymentEventKind.FAILED: self.on_payment_failed,
            PaymentEventKind.PROCESSING: self.on_payment_processing,
            PaymentEventKind.CANCELLED: self.on_payment_cancelled,
        }

    def verify(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify webhook signature and return the event envelope.

        Args:
            payload: Raw request body as bytes
            signature: Stripe-Signature header value

        Returns:
            Dict[str, Any]: Verified event envelope as plain JSON

        Raises:
            WebhookVerificationError: If the header is missing, the signature
                does not match or the body is not a JSON event
        """
        if not signature:
            logger.warning("webhook_signature_missing")
            raise WebhookVerificationError("Missing Stripe-Signature header")

        try:
            stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self.settings.stripe_webhook_secret,
                tolerance=self.settings.stripe_webhook_tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.error("webhook_signature_verification_failed", error=str(e))
            raise WebhookVerificationError("Invalid webhook signature") from e
        except (ValueError, AttributeError, TypeError) as e:
            # non-object JSON fails inside stripe.Event.construct_from
            logger.error("webhook_payload_invalid", error=str(e), error_type=type(e).__name__)
            raise WebhookVerificationError("Invalid webhook payload") from e

        envelope = json.loads(payload)
        if not isinstance(envelope, dict):
            raise WebhookVerificationError("Invalid webhook payload")
        return envelope

    def process(self, envelope: Mapping[str, Any]) -> WebhookResult:
        """
        Observe a verified event and dispatch it by payment event kind.

        Event types outside the kind table only reach the observer.
        """
        event = PaymentEvent.from_envelope(envelope)
        self.on_payload(event)

        if event.kind is None:
            logger.info(
                "webhook_event_ignored",
                event_id=event.event_id,
                event_type=event.event_type,
            )
            return WebhookResult(
                event_id=event.event_id, event_type=event.event_type, status=IGNORED
            )

        return self.handlers[event.kind](event)

    def on_payload(self, event: PaymentEvent) -> None:
        """Generic observer: fires for every verified event, never writes."""
        logger.info(
            "webhook_payload_received",
            event_id=event.event_id,
            event_type=event.event_type,
        )
        logger.debug("webhook_payload", payload=event.payload)

    def on_payment_succeeded(self, event: PaymentEvent) -> WebhookResult:
        return self._record_status(event, PaymentEventKind.SUCCEEDED)

    def on_payment_failed(self, event: PaymentEvent) -> WebhookResult:
        return self._record_status(event, PaymentEventKind.FAILED)

    def on_payment_processing(self, event: PaymentEvent) -> WebhookResult:
        return self._record_status(event, PaymentEventKind.PROCESSING)

    def on_payment_cancelled(self, event: PaymentEvent) -> WebhookResult:
        return self._record_status(event, PaymentEventKind.CANCELLED)

    def _record_status(self, event: PaymentEvent, kind: PaymentEventKind) -> WebhookResult:
        if not event.payment_id:
            logger.warning(
                "webhook_event_without_payment_id",
                event_id=event.event_id,
                event_type=event.event_type,
            )
            return WebhookResult(
                event_id=event.event_id, event_type=event.event_type, status=IGNORED
            )

        record = StatusRecord(status=kind.status, timestamp=utc_now_iso(), data=event.payload)
        persisted = self.store.set(event.payment_id, record)
        metrics.record_status_write("webhook", kind.status)

        logger.info(
            "status_recorded",
            source="webhook",
            event_id=event.event_id,
            event_type=event.event_type,
            payment_id=event.payment_id,
            status=kind.status,
            persisted=persisted,
        )
        return WebhookResult(
            event_id=event.event_id,
            event_type=event.event_type,
            status=RECORDED,
            payment_id=event.payment_id,
            payment_status=kind.status,
        )
