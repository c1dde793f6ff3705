# routers/payment_router.py → BOOKING CHECKOUT + VERIFICATION
import logging

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.deps import get_booking_reconciler, get_gateway
from app.core.errors import ClientInputError, MISSING_SESSION_ID
from app.core.stripe_gateway import StripeGateway
from app.models.checkout_model import BookingCheckoutRequest, VerifyPaymentRequest
from app.services.checkout_service import build_booking_checkout
from app.services.reconciliation_service import PaymentReconciler

router = APIRouter(tags=["Bookings"])
logger = logging.getLogger("safaripay")


# ========================================
# CREATE CHECKOUT SESSION
# ========================================
@router.post("/create-checkout-session")
async def create_checkout_session(
    payload: BookingCheckoutRequest,
    gateway: StripeGateway = Depends(get_gateway),
):
    logger.info(
        f"Creating checkout session | package={payload.packageId} user={payload.userId} "
        f"original={payload.originalAmount} final={payload.amount} coupon={payload.couponCode}"
    )
    intent = build_booking_checkout(payload, settings)
    session = await gateway.create_checkout_session(intent.params)
    return {
        "id": session["id"],
        "timestamp": intent.timestamp,
        "currency": intent.currency,
    }


# ========================================
# VERIFY PAYMENT
# ========================================
@router.post("/verify-payment")
async def verify_payment(
    payload: VerifyPaymentRequest,
    reconciler: PaymentReconciler = Depends(get_booking_reconciler),
):
    session_id = (payload.sessionId or "").strip()
    logger.info(f"Verifying payment for session: {session_id or '-'}")
    if not session_id:
        raise ClientInputError(MISSING_SESSION_ID, "Session ID is required")

    outcome = await reconciler.reconcile_booking(session_id)
    if outcome.paid:
        logger.info(
            f"Payment verified | {session_id} | {outcome.amount} {outcome.currency} "
            f"coupon={outcome.couponCode or '-'}"
        )
    return outcome.to_response()
