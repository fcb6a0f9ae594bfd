"""
Tests for the Stripe payment flow
"""

from types import SimpleNamespace

import pytest
import stripe
from sqlalchemy import update

from cleanfoss.domain.payments.stripe_service import stripe_service
from cleanfoss.models import Booking, Payment


def make_intent(booking_id, status="succeeded", intent_id="pi_123", amount=29900, metadata=None):
    """Build the same StripeObject type the SDK returns"""
    return stripe.PaymentIntent.construct_from(
        {
            "id": intent_id,
            "object": "payment_intent",
            "status": status,
            "amount": amount,
            "currency": "dkk",
            "metadata": {"bookingId": booking_id} if metadata is None else metadata,
            "client_secret": f"{intent_id}_secret_abc",
        },
        "sk_test",
    )


@pytest.fixture
def fake_stripe(monkeypatch):
    """Route StripeService calls to in-memory intents"""
    state = SimpleNamespace(intents={}, created=[], on_retrieve=None)

    async def create_payment_intent(**kwargs):
        state.created.append(kwargs)
        return make_intent(kwargs["metadata"]["bookingId"], status="requires_payment_method")

    async def retrieve_payment_intent(payment_intent_id):
        if payment_intent_id not in state.intents:
            raise stripe.InvalidRequestError("No such payment_intent", "intent")
        if state.on_retrieve:
            state.on_retrieve()
        return state.intents[payment_intent_id]

    monkeypatch.setattr(stripe_service, "is_available", lambda: True)
    monkeypatch.setattr(stripe_service, "create_payment_intent", create_payment_intent)
    monkeypatch.setattr(stripe_service, "retrieve_payment_intent", retrieve_payment_intent)
    return state


class TestCreatePaymentIntent:
    """POST /payments/create-intent"""

    def test_returns_client_secret(self, client, fake_stripe):
        response = client.post(
            "/payments/create-intent",
            json={
                "amount": 663,
                "bookingId": "booking-1",
                "customerEmail": "Kunde@Example.dk",
                "customerName": "Mette Hansen",
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "clientSecret": "pi_123_secret_abc",
            "paymentIntentId": "pi_123",
        }

        request = fake_stripe.created[0]
        assert request["amount_minor"] == 66300
        assert request["currency"] == "dkk"
        assert request["receipt_email"] == "kunde@example.dk"
        assert request["description"] == "CleanFoss booking payment"
        assert request["metadata"] == {
            "bookingId": "booking-1",
            "customerEmail": "kunde@example.dk",
            "customerName": "Mette Hansen",
        }

    def test_fractional_amount_rounds_to_minor_units(self, client, fake_stripe):
        client.post(
            "/payments/create-intent",
            json={"amount": 99.995, "currency": "DKK", "customerEmail": "a@b.dk", "customerName": "A"},
        )

        assert fake_stripe.created[0]["amount_minor"] == 10000

    def test_rejects_non_positive_amount(self, client, fake_stripe):
        response = client.post(
            "/payments/create-intent",
            json={"amount": 0, "customerEmail": "a@b.dk", "customerName": "A"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "amount"
        assert fake_stripe.created == []

    def test_unconfigured_stripe(self, client, monkeypatch):
        monkeypatch.setattr(stripe_service, "is_available", lambda: False)

        response = client.post(
            "/payments/create-intent",
            json={"amount": 100, "customerEmail": "a@b.dk", "customerName": "A"},
        )

        assert response.status_code == 503


class TestConfirmPayment:
    """POST /payments/confirm"""

    def test_unsucceeded_intent_changes_nothing(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()
        fake_stripe.intents["pi_123"] = make_intent(booking_id, status="requires_payment_method")

        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_123", "bookingId": booking_id}
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Payment has not succeeded",
            "status": "requires_payment_method",
        }
        assert db.get(Booking, booking_id).status == "PENDING"
        assert db.query(Payment).count() == 0

    def test_succeeded_intent_confirms_booking(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()
        fake_stripe.intents["pi_123"] = make_intent(booking_id)

        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_123", "bookingId": booking_id}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Payment confirmed successfully"
        assert body["booking"]["status"] == "CONFIRMED"
        assert body["payment"]["amount"] == 299.0
        assert body["payment"]["currency"] == "DKK"
        assert body["payment"]["transactionId"] == "pi_123"
        assert body["payment"]["status"] == "COMPLETED"

        payment = db.query(Payment).one()
        assert payment.booking_id == booking_id
        assert payment.company_id == "default-company"
        assert payment.processed_at is not None

    def test_repeat_confirmation_is_idempotent(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()
        fake_stripe.intents["pi_123"] = make_intent(booking_id)
        body = {"paymentIntentId": "pi_123", "bookingId": booking_id}

        first = client.post("/payments/confirm", json=body)
        second = client.post("/payments/confirm", json=body)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["alreadyConfirmed"] is True
        assert second.json()["payment"]["id"] == first.json()["payment"]["id"]
        assert db.query(Payment).count() == 1

    def test_second_intent_for_confirmed_booking(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()
        fake_stripe.intents["pi_123"] = make_intent(booking_id)
        fake_stripe.intents["pi_456"] = make_intent(booking_id, intent_id="pi_456")
        client.post("/payments/confirm", json={"paymentIntentId": "pi_123", "bookingId": booking_id})

        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_456", "bookingId": booking_id}
        )

        assert response.status_code == 409
        assert db.query(Payment).count() == 1

    def test_intent_for_another_booking(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()
        fake_stripe.intents["pi_123"] = make_intent("some-other-booking")

        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_123", "bookingId": booking_id}
        )

        assert response.status_code == 400
        assert db.get(Booking, booking_id).status == "PENDING"

    def test_intent_without_booking_metadata(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()
        fake_stripe.intents["pi_123"] = make_intent(booking_id, metadata={})

        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_123", "bookingId": booking_id}
        )

        assert response.status_code == 200
        assert db.get(Booking, booking_id).status == "CONFIRMED"

    def test_booking_confirmed_while_stripe_was_queried(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()
        fake_stripe.intents["pi_456"] = make_intent(booking_id, intent_id="pi_456")

        def other_request_confirms():
            db.execute(update(Booking).where(Booking.id == booking_id).values(status="CONFIRMED"))
            db.commit()

        fake_stripe.on_retrieve = other_request_confirms

        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_456", "bookingId": booking_id}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Booking is CONFIRMED and cannot be confirmed again"
        assert db.query(Payment).count() == 0

    def test_unknown_intent(self, client, db, create_booking, fake_stripe):
        booking_id = create_booking()

        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_missing", "bookingId": booking_id}
        )

        assert response.status_code == 502
        assert db.query(Payment).count() == 0

    def test_unknown_booking(self, client, catalog, fake_stripe):
        response = client.post(
            "/payments/confirm", json={"paymentIntentId": "pi_123", "bookingId": "nope"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Booking not found"
