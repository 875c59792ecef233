"""
Unit tests for payment event classification.
"""
import pytest

from payment_relay.core.events import (
    STRIPE_EVENT_KINDS,
    PaymentEvent,
    PaymentEventKind,
    classify_event,
    status_metric_label,
)
from tests.conftest import make_event


@pytest.mark.unit
def test_kinds_cover_every_status_tag() -> None:
    assert {kind.status for kind in PaymentEventKind} == {
        "success",
        "failed",
        "processing",
        "cancelled",
    }


@pytest.mark.unit
@pytest.mark.parametrize(
    "event_type,expected",
    [
        ("payment_intent.succeeded", PaymentEventKind.SUCCEEDED),
        ("payment_intent.payment_failed", PaymentEventKind.FAILED),
        ("payment_intent.processing", PaymentEventKind.PROCESSING),
        ("payment_intent.canceled", PaymentEventKind.CANCELLED),
        ("checkout.session.async_payment_succeeded", PaymentEventKind.SUCCEEDED),
        ("checkout.session.async_payment_failed", PaymentEventKind.FAILED),
        ("checkout.session.expired", PaymentEventKind.CANCELLED),
    ],
)
def test_classify_known_event_types(event_type: str, expected: PaymentEventKind) -> None:
    assert classify_event(event_type, {}) is expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "payment_status,expected",
    [
        ("paid", PaymentEventKind.SUCCEEDED),
        ("no_payment_required", PaymentEventKind.SUCCEEDED),
        ("unpaid", PaymentEventKind.PROCESSING),
    ],
)
def test_completed_checkout_depends_on_payment_status(
    payment_status: str, expected: PaymentEventKind
) -> None:
    obj = {"id": "cs_test_1", "payment_status": payment_status}

    assert classify_event("checkout.session.completed", obj) is expected


@pytest.mark.unit
@pytest.mark.parametrize("event_type", ["customer.created", "charge.refunded", ""])
def test_unknown_event_types_have_no_kind(event_type: str) -> None:
    assert event_type not in STRIPE_EVENT_KINDS
    assert classify_event(event_type, {"id": "obj_1"}) is None


@pytest.mark.unit
def test_from_envelope_extracts_payment_id() -> None:
    envelope = make_event("payment_intent.succeeded", {"id": "pi_123", "amount": 1000})

    event = PaymentEvent.from_envelope(envelope)

    assert event.event_id == "evt_test_001"
    assert event.event_type == "payment_intent.succeeded"
    assert event.kind is PaymentEventKind.SUCCEEDED
    assert event.payment_id == "pi_123"
    assert event.payload == envelope


@pytest.mark.unit
def test_from_envelope_without_data_object() -> None:
    event = PaymentEvent.from_envelope({"id": "evt_1", "type": "payment_intent.succeeded"})

    assert event.kind is PaymentEventKind.SUCCEEDED
    assert event.payment_id is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "status,expected",
    [
        ("success", "success"),
        ("cancelled", "cancelled"),
        ("requires_action", "other"),
        ("junk-42", "other"),
        ("", "other"),
    ],
)
def test_status_metric_label_is_bounded(status: str, expected: str) -> None:
    assert status_metric_label(status) == expected
