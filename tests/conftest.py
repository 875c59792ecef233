"""
Pytest configuration and fixtures.
"""
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Generator, Optional

import pytest
from fastapi.testclient import TestClient

from payment_relay.api.main import create_app
from payment_relay.config import Settings
from payment_relay.core.status_store import StatusStore
from payment_relay.monitoring.logging import setup_logging

WEBHOOK_SECRET = "whsec_test_fake_secret"


def pytest_configure(config: Any) -> None:
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond tmp files")
    config.addinivalue_line("markers", "integration: tests driving the HTTP application")


@pytest.fixture(scope="session")
def test_settings(tmp_path_factory: pytest.TempPathFactory) -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        stripe_secret_key="sk_test_fake_key_for_testing",
        stripe_webhook_secret=WEBHOOK_SECRET,
        payment_return_url="http://localhost:3000/payment-return",
        payment_environment="test_mode",
        payments_file=str(tmp_path_factory.mktemp("data") / "payments.json"),
        app_name="payment-relay-test",
        app_env="test",
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture(scope="session", autouse=True)
def configured_logging(test_settings: Settings) -> None:
    """Route structlog through stdlib logging so caplog sees events."""
    setup_logging(test_settings)


@pytest.fixture
def payments_path(tmp_path: Any) -> Any:
    return tmp_path / "payments.json"


@pytest.fixture
def store(payments_path: Any) -> StatusStore:
    """Empty, loaded status store backed by a temp file."""
    status_store = StatusStore(payments_path)
    status_store.load()
    return status_store


@pytest.fixture
def client(test_settings: Settings, store: StatusStore) -> Generator[TestClient, None, None]:
    """Create test HTTP client with the app lifespan running."""
    app = create_app(settings=test_settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


def sign_payload(
    payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None
) -> str:
    """Build a Stripe-Signature header for ``payload``."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(
    event_type: str,
    obj: Optional[Dict[str, Any]] = None,
    event_id: str = "evt_test_001",
) -> Dict[str, Any]:
    """Helper to create a Stripe event envelope."""
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "livemode": False,
        "data": {"object": obj if obj is not None else {}},
    }


def signed_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize an event and sign it; returns body and headers for a request."""
    payload = json.dumps(event)
    return {
        "content": payload,
        "headers": {
            "Stripe-Signature": sign_payload(payload),
            "Content-Type": "application/json",
        },
    }
