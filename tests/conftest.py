"""
Shared fixtures.

The Stripe gateway, Firestore store and Resend mailer are replaced with
in-memory fakes through FastAPI dependency overrides, so no test talks to
a real service.
"""
import json
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["RESEND_API_KEY"] = "re_test_dummy"
os.environ["ADMIN_EMAILS"] = "ops@kob.test, owner@kob.test"
os.environ["COMPANY_EMAIL"] = "team@kob.test"
os.environ.pop("COMPANION_APP_URL", None)
os.environ.pop("ACTIVITY_APP_URL", None)

import pytest
from fastapi.testclient import TestClient

from app.core.deps import get_gateway, get_mailer, get_tip_store
from app.core.errors import SessionNotFound, SignatureVerificationError
from main import app

VALID_SIGNATURE = "t=1,v1=valid"


class FakeGateway:
    def __init__(self):
        self.sessions = {}
        self.created = []
        self.retrieve_calls = []
        self.fail_with = None

    async def create_checkout_session(self, params):
        if self.fail_with:
            raise self.fail_with
        self.created.append(params)
        session_id = f"cs_test_{len(self.created)}"
        price = params["line_items"][0]["price_data"]
        session = {
            "id": session_id,
            "url": f"https://checkout.stripe.com/c/pay/{session_id}",
            "payment_status": "unpaid",
            "status": "open",
            "amount_total": price["unit_amount"],
            "currency": price["currency"],
            "customer": None,
            "payment_intent": None,
            "metadata": dict(params["metadata"]),
        }
        self.sessions[session_id] = session
        return session

    def pay(self, session_id, customer="cus_test_1", payment_intent=None):
        session = self.sessions[session_id]
        session.update(
            payment_status="paid",
            status="complete",
            customer=customer,
            payment_intent=payment_intent or f"pi_{session_id}",
        )
        return session

    async def retrieve_checkout_session(self, session_id):
        self.retrieve_calls.append(session_id)
        if session_id not in self.sessions:
            raise SessionNotFound(details={"session_id": session_id})
        return self.sessions[session_id]

    def construct_event(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise SignatureVerificationError()
        return json.loads(payload)


class FakeTipStore:
    def __init__(self):
        self.tips = {}
        self.guides = {}
        self.emails = []
        self.claims = 0

    async def get_tip(self, tip_id):
        return self.tips.get(tip_id)

    async def claim_tip(self, record):
        self.claims += 1
        if record.id in self.tips:
            return False
        self.tips[record.id] = record
        return True

    async def get_guide(self, guide_id):
        guide = self.guides.get(guide_id)
        return {**guide, "id": guide_id} if guide else None

    async def find_guide_by_field(self, field, value):
        for guide_id in sorted(self.guides):
            if self.guides[guide_id].get(field) == value:
                return {**self.guides[guide_id], "id": guide_id}
        return None

    async def list_guides(self, limit):
        return [{**self.guides[g], "id": g} for g in sorted(self.guides)[:limit]]

    async def log_email(self, notification):
        self.emails.append(notification)


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, to, subject, html):
        if to in self.fail_for:
            raise RuntimeError("mailbox unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return f"msg_{len(self.sent)}"


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store():
    return FakeTipStore()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(gateway, store, mailer):
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_tip_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
