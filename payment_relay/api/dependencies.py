"""Request-scoped access to the services built by the application factory."""
from fastapi import Request

from payment_relay.core.status_store import StatusStore
from payment_relay.integrations.checkout import CheckoutDelegate
from payment_relay.integrations.webhook_handler import WebhookReceiver
from payment_relay.monitoring.health import HealthCheck


def get_store(request: Request) -> StatusStore:
    return request.app.state.store


def get_checkout_delegate(request: Request) -> CheckoutDelegate:
    return request.app.state.checkout


def get_webhook_receiver(request: Request) -> WebhookReceiver:
    return request.app.state.webhook_receiver


def get_health_check(request: Request) -> HealthCheck:
    return request.app.state.health_check
