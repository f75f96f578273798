from types import SimpleNamespace

import pytest
import stripe

from app.services.errors import GatewayError, NotFound, OutcomeUnknown
from app.services.payment_gateway import (
    StripePaymentGateway,
    from_minor_units,
    to_minor_units,
)


@pytest.mark.parametrize(
    "amount, minor",
    [(9.99, 999), (0.1 + 0.2, 30), (19.995, 2000), (12, 1200), ("4.50", 450)],
)
def test_to_minor_units(amount, minor):
    assert to_minor_units(amount) == minor


def test_minor_units_round_trip_price():
    assert from_minor_units(to_minor_units(9.99)) == 9.99


@pytest.fixture
def stripe_gateway():
    return StripePaymentGateway(api_key="sk_test_123", timeout=2.0, max_retries=0)


def fake_intent(**overrides):
    fields = dict(
        id="pi_123",
        status="succeeded",
        amount=999,
        currency="usd",
        client_secret="pi_123_secret_abc",
        metadata={"bookId": "1", "buyerId": "2", "sellerId": "3"},
        last_payment_error=None,
        latest_charge=SimpleNamespace(receipt_url="https://pay.stripe.com/receipts/ch_1"),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_create_intent_passes_amount_and_tags(stripe_gateway, monkeypatch):
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        return fake_intent(status="requires_payment_method", latest_charge=None)

    monkeypatch.setattr(stripe.PaymentIntent, "create", create)

    intent = stripe_gateway.create_intent(999, "usd", {"bookId": "1"})

    assert intent.id == "pi_123"
    assert intent.client_secret == "pi_123_secret_abc"
    assert captured["amount"] == 999
    assert captured["currency"] == "usd"
    assert captured["metadata"] == {"bookId": "1"}
    assert captured["api_key"] == "sk_test_123"


def test_retrieve_intent_maps_fields(stripe_gateway, monkeypatch):
    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda intent_id, **kwargs: fake_intent(
            last_payment_error=SimpleNamespace(message="Your card was declined."),
        ),
    )

    intent = stripe_gateway.retrieve_intent("pi_123")

    assert intent.succeeded
    assert intent.metadata["buyerId"] == "2"
    assert intent.last_error == "Your card was declined."
    assert intent.receipt_url == "https://pay.stripe.com/receipts/ch_1"


def test_unexpanded_charge_has_no_receipt(stripe_gateway, monkeypatch):
    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda intent_id, **kwargs: fake_intent(latest_charge="ch_1"),
    )

    assert stripe_gateway.retrieve_intent("pi_123").receipt_url is None


def test_network_failure_is_outcome_unknown(stripe_gateway, monkeypatch):
    def timeout(*args, **kwargs):
        raise stripe.APIConnectionError("Request timed out")

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", timeout)

    with pytest.raises(OutcomeUnknown):
        stripe_gateway.retrieve_intent("pi_123")


def test_missing_intent_is_not_found(stripe_gateway, monkeypatch):
    def missing(*args, **kwargs):
        raise stripe.InvalidRequestError(
            "No such payment_intent: 'pi_nope'", "intent", code="resource_missing"
        )

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", missing)

    with pytest.raises(NotFound):
        stripe_gateway.retrieve_intent("pi_nope")


def test_refund_is_idempotent_per_intent(stripe_gateway, monkeypatch):
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="re_1", status="succeeded")

    monkeypatch.setattr(stripe.Refund, "create", create)

    refund = stripe_gateway.create_refund("pi_123")

    assert refund.id == "re_1"
    assert captured["payment_intent"] == "pi_123"
    assert captured["idempotency_key"] == "refund-pi_123"


def test_refund_error_is_gateway_error(stripe_gateway, monkeypatch):
    def fail(**kwargs):
        raise stripe.CardError("Charge already refunded", None, "charge_already_refunded")

    monkeypatch.setattr(stripe.Refund, "create", fail)

    with pytest.raises(GatewayError) as exc:
        stripe_gateway.create_refund("pi_123")

    assert not isinstance(exc.value, OutcomeUnknown)
