import asyncio
import logging

import pytest

from conftest import FakeTipStore
from app.core.config import settings
from app.core.errors import ClientInputError, NOT_A_TIP_SESSION, SessionNotFound
from app.models.checkout_model import BookingCheckoutRequest, TipCheckoutRequest
from app.services.checkout_service import build_booking_checkout, build_tip_checkout
from app.services.guide_resolver import GuideResolver
from app.services.reconciliation_service import PaymentReconciler


def run(coro):
    return asyncio.run(coro)


def create_booking(gateway, **fields):
    intent = build_booking_checkout(BookingCheckoutRequest(**fields), settings)
    return run(gateway.create_checkout_session(intent.params))["id"]


def create_tip(gateway, **fields):
    intent = build_tip_checkout(TipCheckoutRequest(**fields), settings)
    return run(gateway.create_checkout_session(intent.params))["id"]


@pytest.fixture
def reconciler(gateway, store):
    return PaymentReconciler(gateway, store, GuideResolver(store))


# --------------------------------------------------------------
# Bookings
# --------------------------------------------------------------
def test_booking_end_to_end(gateway, reconciler):
    session_id = create_booking(gateway, userId="u1", amount=49.99, currency="USD")
    session = gateway.sessions[session_id]
    assert session["currency"] == "usd"
    assert session["amount_total"] == 4999
    assert session["metadata"]["currency"] == "usd"

    gateway.pay(session_id, customer="cus_42")
    outcome = run(reconciler.reconcile_booking(session_id))

    assert outcome.paid is True
    assert outcome.amount == 49.99
    assert outcome.finalAmount == 49.99
    assert outcome.originalAmount == 49.99
    assert outcome.discountAmount == 0
    assert outcome.couponCode is None
    assert outcome.customerId == "cus_42"
    assert outcome.to_response()["metadata"]["userId"] == "u1"


def test_unpaid_booking_is_not_an_error(gateway, reconciler):
    session_id = create_booking(gateway, userId="u1", amount=10)
    outcome = run(reconciler.reconcile_booking(session_id))

    assert outcome.to_response() == {
        "paid": False,
        "status": "unpaid",
        "metadata": gateway.sessions[session_id]["metadata"],
    }


def test_booking_coupon_round_trip(gateway, reconciler):
    session_id = create_booking(
        gateway, userId="u1", amount=80, originalAmount=100, discountAmount=20, couponCode="JAMBO20"
    )
    gateway.pay(session_id)
    outcome = run(reconciler.reconcile_booking(session_id))

    assert outcome.amount == 80
    assert outcome.originalAmount == 100
    assert outcome.discountAmount == 20
    assert outcome.couponCode == "JAMBO20"


def test_booking_without_metadata_falls_back_to_processor_total(gateway, reconciler):
    gateway.sessions["cs_legacy"] = {
        "id": "cs_legacy",
        "payment_status": "paid",
        "amount_total": 15000,
        "currency": "gbp",
        "customer": {"id": "cus_obj"},
        "metadata": {"couponCode": "none"},
    }
    outcome = run(reconciler.reconcile_booking("cs_legacy"))

    assert outcome.originalAmount == 150.0
    assert outcome.discountAmount == 0.0
    assert outcome.couponCode is None
    assert outcome.customerId == "cus_obj"


def test_unknown_booking_session(reconciler):
    with pytest.raises(SessionNotFound):
        run(reconciler.reconcile_booking("cs_missing"))


# --------------------------------------------------------------
# Tips
# --------------------------------------------------------------
def test_unpaid_tip_has_no_side_effects(gateway, store, reconciler):
    session_id = create_tip(gateway, amount=10)
    outcome = run(reconciler.reconcile_tip(session_id))

    assert outcome.paid is False
    assert outcome.status == "unpaid"
    assert store.tips == {}
    assert store.claims == 0


def test_tip_is_recorded_once(gateway, store, reconciler):
    session_id = create_tip(gateway, amount=25, currency="usd", userId="u1", userName="Ada", message="Asante!")
    gateway.pay(session_id, payment_intent="pi_abc")

    first = run(reconciler.reconcile_tip(session_id))
    second = run(reconciler.reconcile_tip(session_id, source="webhook"))

    assert first.created is True
    assert second.created is False
    assert list(store.tips) == ["pi_abc"]
    assert second.record == first.record

    record = store.tips["pi_abc"]
    assert record.amount == 25
    assert record.currency == "usd"
    assert record.session_id == session_id
    assert record.recipient_type == "company"
    assert record.recipient_name == settings.COMPANY_NAME
    assert record.sender_name == "Ada"
    assert record.message == "Asante!"
    assert record.status == "completed"
    assert record.source == "verify"


def test_concurrent_claim_has_a_single_winner(gateway):
    class RacyStore(FakeTipStore):
        # Both callers look before either writes
        async def get_tip(self, tip_id):
            await asyncio.sleep(0)
            return None

    store = RacyStore()
    reconciler = PaymentReconciler(gateway, store, GuideResolver(store))
    session_id = create_tip(gateway, amount=10)
    gateway.pay(session_id)

    async def race():
        return await asyncio.gather(
            reconciler.reconcile_tip(session_id, source="verify"),
            reconciler.reconcile_tip(session_id, source="webhook"),
        )

    outcomes = run(race())

    assert sorted(o.created for o in outcomes) == [False, True]
    assert store.claims == 2
    assert len(store.tips) == 1
    assert all(o.paid for o in outcomes)


def test_tip_for_missing_guide_degrades_to_supplied_name(gateway, store, reconciler, caplog):
    session_id = create_tip(gateway, amount=10, recipientType="guide", recipientId="g1", recipientName="Joseph")
    gateway.pay(session_id)

    with caplog.at_level(logging.WARNING, logger="safaripay"):
        outcome = run(reconciler.reconcile_tip(session_id))

    assert outcome.paid is True
    assert outcome.record.recipient_id == "g1"
    assert outcome.record.recipient_name == "Joseph"
    assert outcome.record.recipient_email is None
    assert "Guide not found" in caplog.text


def test_tip_for_unnamed_missing_guide_uses_fallback_name(gateway, reconciler):
    session_id = create_tip(gateway, amount=10, recipientType="guide", recipientId="g1")
    gateway.pay(session_id)

    outcome = run(reconciler.reconcile_tip(session_id))
    assert outcome.record.recipient_name == "your guide"


def test_tip_for_known_guide_uses_canonical_identity(gateway, store, reconciler):
    store.guides["g7"] = {"displayName": "Wanjiru Kamau", "email": "wanjiru@kob.test"}
    session_id = create_tip(gateway, amount=15, recipientType="guide", recipientId="g7", recipientName="Wanjiru")
    gateway.pay(session_id)

    record = run(reconciler.reconcile_tip(session_id)).record
    assert record.recipient_id == "g7"
    assert record.recipient_name == "Wanjiru Kamau"
    assert record.recipient_email == "wanjiru@kob.test"


def test_guide_lookup_failure_does_not_fail_confirmation(gateway, store, caplog):
    class BrokenResolver:
        async def resolve(self, guide_id, guide_name):
            raise RuntimeError("firestore down")

    reconciler = PaymentReconciler(gateway, store, BrokenResolver())
    session_id = create_tip(gateway, amount=10, recipientType="guide", recipientId="g1", recipientName="Joseph")
    gateway.pay(session_id)

    with caplog.at_level(logging.ERROR, logger="safaripay"):
        outcome = run(reconciler.reconcile_tip(session_id))

    assert outcome.created is True
    assert outcome.record.recipient_name == "Joseph"
    assert "Guide resolution failed" in caplog.text


def test_tip_reconciler_rejects_booking_sessions(gateway, reconciler):
    session_id = create_booking(gateway, userId="u1", amount=10)
    gateway.pay(session_id)

    with pytest.raises(ClientInputError) as exc:
        run(reconciler.reconcile_tip(session_id))
    assert exc.value.code == NOT_A_TIP_SESSION


def test_tip_record_falls_back_to_session_id_without_payment_intent(gateway, store, reconciler):
    session = {
        "id": "cs_no_pi",
        "payment_status": "paid",
        "amount_total": 700,
        "currency": "gbp",
        "payment_intent": None,
        "metadata": {"paymentType": "tip", "recipientType": "company", "recipientId": "none"},
    }
    outcome = run(reconciler.reconcile_tip(session=session, source="webhook"))

    assert outcome.record.id == "cs_no_pi"
    assert outcome.record.amount == 7.0
    assert outcome.record.source == "webhook"
    assert "cs_no_pi" in store.tips
