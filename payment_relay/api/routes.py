"""
API routes for checkout, webhooks, payment status and pages.
"""
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import FileResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from payment_relay.core.events import status_metric_label
from payment_relay.core.exceptions import ApiError, PaymentNotFoundError, WebhookVerificationError
from payment_relay.core.status_store import StatusRecord, StatusStore, utc_now_iso
from payment_relay.integrations.checkout import CheckoutDelegate
from payment_relay.integrations.webhook_handler import WebhookReceiver
from payment_relay.monitoring.health import HealthCheck
from payment_relay.monitoring.metrics import metrics

from .dependencies import (
    get_checkout_delegate,
    get_health_check,
    get_store,
    get_webhook_receiver,
)
from .schemas import (
    CheckoutResponse,
    DynamicCheckoutRequest,
    ErrorResponse,
    HealthCheckResponse,
    PaymentListItem,
    SavePaymentResponse,
    StatusRecordResponse,
    WebhookResponse,
)

logger = structlog.get_logger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
METADATA_PREFIX = "metadata_"

# Create routers
checkout_router = APIRouter(prefix="/api", tags=["checkout"])
webhook_router = APIRouter(prefix="/api", tags=["webhooks"])
payment_router = APIRouter(prefix="/api", tags=["payments"])
pages_router = APIRouter(tags=["pages"])
monitoring_router = APIRouter(tags=["monitoring"])


@checkout_router.get(
    "/checkout",
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Static checkout",
    description="Start a checkout session for one preconfigured Stripe price",
)
async def static_checkout(
    request: Request,
    product_id: Optional[str] = Query(default=None, alias="productId"),
    quantity: int = Query(default=1, ge=1),
    email: Optional[str] = Query(default=None),
    checkout: CheckoutDelegate = Depends(get_checkout_delegate),
) -> Dict[str, str]:
    """
    Static checkout: everything comes from the query string.

    Query parameters named ``metadata_<key>`` are stored on the session as
    ``<key>``.
    """
    if not product_id:
        raise ApiError("productId is required")

    metadata = {
        key[len(METADATA_PREFIX):]: value
        for key, value in request.query_params.items()
        if key.startswith(METADATA_PREFIX) and len(key) > len(METADATA_PREFIX)
    }
    return await checkout.create_static_session(
        product_id=product_id,
        quantity=quantity,
        customer_email=email,
        metadata=metadata,
    )


@checkout_router.post(
    "/checkout",
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Dynamic checkout",
    description="Start a checkout session for a caller-built cart",
)
async def dynamic_checkout(
    body: DynamicCheckoutRequest,
    checkout: CheckoutDelegate = Depends(get_checkout_delegate),
) -> Dict[str, str]:
    return await checkout.create_dynamic_session(
        product_cart=[item.model_dump() for item in body.product_cart],
        customer_email=body.customer.email if body.customer else None,
        metadata=body.metadata,
        return_url=body.return_url,
    )


@webhook_router.post(
    "/webhook",
    response_model=WebhookResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Stripe webhook endpoint",
    description="Verify a Stripe event and record the payment status it carries",
)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    receiver: WebhookReceiver = Depends(get_webhook_receiver),
) -> Dict[str, Any]:
    """
    Handle Stripe webhook events.

    Nothing is observed or written unless the signature verifies.
    """
    start_time = time.time()
    body = await request.body()

    try:
        envelope = receiver.verify(body, stripe_signature)
    except WebhookVerificationError:
        metrics.record_webhook_event("unverified", "rejected", time.time() - start_time)
        raise

    result = receiver.process(envelope)
    metrics.record_webhook_event(result.event_type, result.status, time.time() - start_time)

    return {
        "received": True,
        "event_id": result.event_id,
        "event_type": result.event_type,
        "status": result.status,
    }


async def _read_payment_body(request: Request) -> Dict[str, Any]:
    """Accept either a JSON object or a URL-encoded form."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        return {key: value for key, value in form.items()}

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        raise ApiError("Request body must be a JSON object")
    if not isinstance(body, dict):
        raise ApiError("Request body must be a JSON object")
    return body


@payment_router.post(
    "/save-payment",
    response_model=SavePaymentResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Record a payment status",
    description="Write a status record directly, e.g. from return-URL parameters",
)
async def save_payment(
    request: Request,
    store: StatusStore = Depends(get_store),
) -> Dict[str, Any]:
    body = await _read_payment_body(request)
    payment_id = body.get("id")
    payment_status = body.get("status")

    if not payment_id or not payment_status:
        logger.warning("save_payment_missing_fields", fields=sorted(body))
        raise ApiError("Payment ID and status are required")

    record = StatusRecord(
        status=str(payment_status),
        timestamp=str(body.get("timestamp") or utc_now_iso()),
        data=body,
    )
    persisted = store.set(str(payment_id), record)
    metrics.record_status_write("manual", status_metric_label(record.status))

    logger.info(
        "status_recorded",
        source="manual",
        payment_id=str(payment_id),
        status=record.status,
        persisted=persisted,
    )
    return {"success": True, "message": "Payment saved"}


@payment_router.get(
    "/payment-status/{payment_id}",
    response_model=StatusRecordResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get payment status",
    description="Retrieve the last recorded status of a payment",
)
async def get_payment_status(
    payment_id: str,
    store: StatusStore = Depends(get_store),
) -> Dict[str, Any]:
    record = store.get(payment_id)
    if record is None:
        raise PaymentNotFoundError(payment_id)
    return record.model_dump()


@payment_router.get(
    "/payments",
    response_model=List[PaymentListItem],
    summary="List payments",
    description="Every recorded payment status, annotated with its ID",
)
async def list_payments(store: StatusStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [
        {"id": payment_id, **record.model_dump()}
        for payment_id, record in store.list()
    ]


@pages_router.get("/", include_in_schema=False)
async def index_page() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@pages_router.get("/payment-return", include_in_schema=False)
async def payment_return_page() -> FileResponse:
    """Where customers land after checkout."""
    return FileResponse(STATIC_DIR / "return.html", media_type="text/html")


@monitoring_router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health check",
    description="Liveness plus status store summary",
)
async def health(health_check: HealthCheck = Depends(get_health_check)) -> Dict[str, Any]:
    return await health_check.check_all()


@monitoring_router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics",
    include_in_schema=False,
)
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
