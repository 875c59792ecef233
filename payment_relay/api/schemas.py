"""
Pydantic schemas for API request/response models.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    """One line of a dynamic checkout cart."""

    product_id: str = Field(..., min_length=1, description="Stripe price ID")
    quantity: int = Field(default=1, gt=0, description="Units of the price")


class Customer(BaseModel):
    email: Optional[str] = Field(default=None, description="Email prefilled on checkout")
    name: Optional[str] = Field(default=None, description="Customer display name")


class DynamicCheckoutRequest(BaseModel):
    """Request schema for dynamic checkout."""

    product_cart: List[CartItem] = Field(..., min_length=1, description="Items to charge")
    customer: Optional[Customer] = Field(default=None, description="Optional customer details")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Session metadata")
    return_url: Optional[str] = Field(
        default=None, description="Overrides the configured return URL"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_cart": [{"product_id": "price_1PxYz", "quantity": 2}],
                    "customer": {"email": "buyer@example.com", "name": "Ada Buyer"},
                    "metadata": {"order_id": "order_123"},
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    """Response schema for checkout initiation."""

    checkout_url: str = Field(..., description="Hosted checkout page URL")
    session_id: str = Field(..., description="Stripe Checkout Session ID")


class StatusRecordResponse(BaseModel):
    """Response schema for a single payment status."""

    status: str = Field(..., description="Payment status tag")
    timestamp: str = Field(..., description="When the status was recorded (ISO 8601)")
    data: Any = Field(default=None, description="Webhook event or request body that set it")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "success",
                    "timestamp": "2024-01-01T00:00:00Z",
                    "data": {
                        "id": "pay_123",
                        "status": "success",
                        "timestamp": "2024-01-01T00:00:00Z",
                    },
                }
            ]
        }
    }


class PaymentListItem(BaseModel):
    """A status record annotated with its payment ID."""

    id: str = Field(..., description="Payment ID")
    status: str = Field(..., description="Payment status tag")
    timestamp: str = Field(..., description="When the status was recorded (ISO 8601)")
    data: Any = Field(default=None, description="Webhook event or request body that set it")


class SavePaymentResponse(BaseModel):
    success: bool = Field(..., description="Whether the record was accepted")
    message: str = Field(..., description="Status message")


class WebhookResponse(BaseModel):
    """Response schema for webhook processing."""

    received: bool = Field(default=True, description="Event was verified and accepted")
    event_id: Optional[str] = Field(default=None, description="Stripe event ID")
    event_type: str = Field(..., description="Stripe event type")
    status: str = Field(..., description="Processing outcome (recorded/ignored)")


class HealthCheckResponse(BaseModel):
    """Response schema for health checks."""

    status: str = Field(..., description="Overall health status (healthy/degraded)")
    checks: Optional[Dict[str, Any]] = Field(default=None, description="Individual checks")
    message: Optional[str] = Field(default=None, description="Status message")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Error message")
