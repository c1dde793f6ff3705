# core/deps.py
"""
Explicitly constructed clients, handed to routes through FastAPI dependencies.
Tests swap them with ``app.dependency_overrides``.
"""
from functools import lru_cache

from fastapi import Depends

from app.core.config import settings
from app.core.email import ResendMailer
from app.core.firebase import get_firestore_client
from app.core.stripe_gateway import StripeGateway
from app.services.guide_resolver import GuideResolver
from app.services.notification_service import TipNotifier
from app.services.reconciliation_service import PaymentReconciler
from app.services.tip_store import TipStore


@lru_cache(maxsize=1)
def get_gateway() -> StripeGateway:
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )


@lru_cache(maxsize=1)
def get_tip_store() -> TipStore:
    return TipStore(get_firestore_client(), timeout=settings.UPSTREAM_TIMEOUT_SECONDS)


@lru_cache(maxsize=1)
def get_mailer() -> ResendMailer:
    return ResendMailer(settings.RESEND_API_KEY, settings.EMAIL_SENDER)


def get_booking_reconciler(gateway: StripeGateway = Depends(get_gateway)) -> PaymentReconciler:
    return PaymentReconciler(gateway)


def get_tip_reconciler(
    gateway: StripeGateway = Depends(get_gateway),
    store: TipStore = Depends(get_tip_store),
) -> PaymentReconciler:
    return PaymentReconciler(gateway, store, GuideResolver(store))


def get_notifier(
    mailer: ResendMailer = Depends(get_mailer),
    store: TipStore = Depends(get_tip_store),
) -> TipNotifier:
    return TipNotifier(
        mailer,
        store,
        admin_emails=settings.admin_emails,
        company_email=settings.COMPANY_EMAIL,
        company_name=settings.COMPANY_NAME,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
