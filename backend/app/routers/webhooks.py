# routers/webhooks.py
import logging
from typing import Any, Mapping

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from app.core.deps import get_gateway, get_notifier, get_tip_reconciler
from app.core.stripe_gateway import StripeGateway
from app.services.notification_service import TipNotifier
from app.services.reconciliation_service import PaymentReconciler

router = APIRouter(prefix="/tip", tags=["Webhooks"])
logger = logging.getLogger("safaripay")

PAID_EVENTS = ("checkout.session.completed", "checkout.session.async_payment_succeeded")
UNPAID_EVENTS = ("checkout.session.async_payment_failed", "checkout.session.expired")


async def handle_event(
    event: Mapping[str, Any],
    reconciler: PaymentReconciler,
    notifier: TipNotifier,
    background_tasks: BackgroundTasks,
) -> None:
    event_type = event["type"]
    session = event["data"]["object"]
    metadata = session.get("metadata") or {}
    payment_type = metadata.get("paymentType")

    if event_type in PAID_EVENTS:
        if payment_type != "tip":
            logger.info(f"Webhook {event_type} for non-tip session {session.get('id')} ({payment_type})")
            return
        outcome = await reconciler.reconcile_tip(session=session, source="webhook")
        if outcome.created:
            background_tasks.add_task(notifier.dispatch, outcome.record)
        logger.info(f"Webhook {event_type} reconciled {session.get('id')} | paid={outcome.paid} new={outcome.created}")

    elif event_type in UNPAID_EVENTS:
        logger.warning(f"Webhook {event_type} for session {session.get('id')} ({payment_type})")

    else:
        logger.debug(f"Ignoring webhook event {event_type}")


@router.post("/webhook")
async def stripe_tip_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: StripeGateway = Depends(get_gateway),
    reconciler: PaymentReconciler = Depends(get_tip_reconciler),
    notifier: TipNotifier = Depends(get_notifier),
):
    # 1. Signature check on the exact bytes Stripe signed
    payload = await request.body()
    event = gateway.construct_event(payload, request.headers.get("stripe-signature"))

    # 2. Always acknowledge a verified event so Stripe does not retry forever
    try:
        await handle_event(event, reconciler, notifier, background_tasks)
    except Exception as e:
        logger.exception(f"Webhook processing failed for event {event.get('id')}: {e}")

    return {"received": True}
