"""
Exception classes for the payment relay.

Every exception carries the HTTP status and client-safe message used when it
surfaces through the API as an ``{"error": ...}`` body.
"""
from typing import Any, Dict, Optional


class PaymentRelayError(Exception):
    """Base exception for all relay errors."""

    http_status: int = 500

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for API responses"""
        return {"error": self.message}


class ApiError(PaymentRelayError):
    """Request rejected before any state was touched."""

    http_status = 400


class PaymentNotFoundError(PaymentRelayError):
    """No status record exists for the requested payment ID."""

    http_status = 404

    def __init__(self, payment_id: str):
        super().__init__("Payment not found")
        self.payment_id = payment_id


class CheckoutError(PaymentRelayError):
    """Stripe refused or failed to create a checkout session."""

    http_status = 502


class WebhookVerificationError(PaymentRelayError):
    """Webhook signature or payload could not be verified."""

    http_status = 400
