# routers/tip_router.py → GUIDE & TEAM TIPS
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from app.core.config import settings
from app.core.deps import get_gateway, get_notifier, get_tip_reconciler
from app.core.errors import ClientInputError, MISSING_SESSION_ID
from app.core.stripe_gateway import StripeGateway
from app.models.checkout_model import TipCheckoutRequest
from app.services.checkout_service import build_tip_checkout
from app.services.notification_service import TipNotifier
from app.services.reconciliation_service import PaymentReconciler

router = APIRouter(prefix="/tip", tags=["Tips"])
logger = logging.getLogger("safaripay")


@router.post("/create-checkout-session")
async def create_tip_checkout_session(
    payload: TipCheckoutRequest,
    gateway: StripeGateway = Depends(get_gateway),
):
    intent = build_tip_checkout(payload, settings)
    session = await gateway.create_checkout_session(intent.params)
    return {"sessionId": session["id"], "url": session.get("url")}


@router.get("/verify-checkout-session")
async def verify_tip_checkout_session(
    background_tasks: BackgroundTasks,
    session_id: Optional[str] = Query(default=None),
    reconciler: PaymentReconciler = Depends(get_tip_reconciler),
    notifier: TipNotifier = Depends(get_notifier),
):
    if not session_id or not session_id.strip():
        raise ClientInputError(MISSING_SESSION_ID, "session_id is required")

    outcome = await reconciler.reconcile_tip(session_id.strip(), source="verify")
    if not outcome.paid:
        return {"success": False, "error": "Payment not completed", "status": outcome.status}

    if outcome.created:
        background_tasks.add_task(notifier.dispatch, outcome.record)

    return {"success": True, "payment": outcome.record.to_payment()}
