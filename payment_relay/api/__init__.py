"""FastAPI application and routes."""
from .main import create_app
from .schemas import (
    CheckoutResponse,
    DynamicCheckoutRequest,
    PaymentListItem,
    SavePaymentResponse,
    StatusRecordResponse,
    WebhookResponse,
)

__all__ = [
    "create_app",
    "CheckoutResponse",
    "DynamicCheckoutRequest",
    "PaymentListItem",
    "SavePaymentResponse",
    "StatusRecordResponse",
    "WebhookResponse",
]
