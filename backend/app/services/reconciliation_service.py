# services/reconciliation_service.py
"""
Verification reconciler.

Re-derives the payment outcome of a checkout session from what Stripe reports
(status, amount_total) plus the metadata written when the session was built.
Bookings have no side effects. Tips are persisted exactly once per payment
intent; only the caller that wins the Firestore claim gets ``created=True``
and is expected to send the notifications.
"""
import logging
from typing import Any, Mapping, Optional

from app.core.errors import ClientInputError, NOT_A_TIP_SESSION
from app.models.checkout_model import BookingOutcome
from app.models.tip_model import GuideIdentity, TipOutcome, TipRecord
from app.services.checkout_service import DEFAULT_GUIDE_NAME, NONE
from app.utils.currency import from_minor_units

logger = logging.getLogger("safaripay.reconciliation")

PAID = "paid"


def _float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _optional(value: Optional[str]) -> Optional[str]:
    """Metadata placeholder 'none' (or empty) means absent."""
    if value is None or value == "" or value == NONE:
        return None
    return value


def _object_id(value: Any) -> Optional[str]:
    """Stripe expandable fields are either an id string or an object with an id."""
    if isinstance(value, Mapping):
        return value.get("id")
    return value or None


class PaymentReconciler:
    def __init__(self, gateway, store=None, guide_resolver=None):
        self.gateway = gateway
        self.store = store
        self.guide_resolver = guide_resolver

    # ----------------------------------------------------------
    # BOOKINGS
    # ----------------------------------------------------------
    async def reconcile_booking(self, session_id: str) -> BookingOutcome:
        session = await self.gateway.retrieve_checkout_session(session_id)
        metadata = dict(session.get("metadata") or {})
        status = session.get("payment_status")
        logger.info(
            f"Session retrieved | id={session.get('id')} status={status} "
            f"amount_total={session.get('amount_total')}"
        )

        if status != PAID:
            return BookingOutcome(paid=False, status=status, metadata=metadata)

        final_amount = from_minor_units(session.get("amount_total"))
        return BookingOutcome(
            paid=True,
            status=status,
            amount=final_amount,
            originalAmount=_float(metadata.get("originalAmount") or final_amount, final_amount),
            discountAmount=_float(metadata.get("discountAmount") or 0, 0.0),
            finalAmount=final_amount,
            couponCode=_optional(metadata.get("couponCode")),
            customerId=_object_id(session.get("customer")),
            currency=(session.get("currency") or metadata.get("currency")),
            metadata=metadata,
        )

    # ----------------------------------------------------------
    # TIPS
    # ----------------------------------------------------------
    async def reconcile_tip(
        self,
        session_id: Optional[str] = None,
        *,
        session: Optional[Mapping[str, Any]] = None,
        source: str = "verify",
    ) -> TipOutcome:
        if session is None:
            session = await self.gateway.retrieve_checkout_session(session_id)
        session_id = session.get("id") or session_id
        metadata = dict(session.get("metadata") or {})

        payment_type = metadata.get("paymentType")
        if payment_type and payment_type != "tip":
            raise ClientInputError(NOT_A_TIP_SESSION, "Session is not a tip payment")

        status = session.get("payment_status")
        if status != PAID:
            logger.info(f"Tip session {session_id} not paid yet ({status})")
            return TipOutcome(paid=False, status=status)

        tip_id = _object_id(session.get("payment_intent")) or session_id
        existing = await self.store.get_tip(tip_id)
        if existing:
            logger.info(f"♻️ Tip {tip_id} already reconciled, returning stored outcome")
            return TipOutcome(paid=True, status=status, record=existing, created=False)

        record = await self._build_tip_record(tip_id, session, metadata, source)
        if not await self.store.claim_tip(record):
            stored = await self.store.get_tip(tip_id)
            return TipOutcome(paid=True, status=status, record=stored or record, created=False)

        return TipOutcome(paid=True, status=status, record=record, created=True)

    async def _build_tip_record(
        self,
        tip_id: str,
        session: Mapping[str, Any],
        metadata: Mapping[str, str],
        source: str,
    ) -> TipRecord:
        recipient_type = metadata.get("recipientType") or "company"
        recipient_id = _optional(metadata.get("recipientId"))
        recipient_name = _optional(metadata.get("recipientName"))
        recipient_email = None

        if recipient_type == "guide":
            guide = await self._resolve_guide(recipient_id, recipient_name)
            if guide.exists:
                recipient_id = guide.id
                recipient_name = guide.name or recipient_name
                recipient_email = guide.email
            recipient_name = recipient_name or DEFAULT_GUIDE_NAME

        metadata_amount = _float(metadata.get("amount"), 0.0)
        amount_total = session.get("amount_total")
        return TipRecord(
            id=tip_id,
            payment_intent_id=_object_id(session.get("payment_intent")),
            session_id=session.get("id"),
            amount=from_minor_units(amount_total) if amount_total is not None else metadata_amount,
            currency=session.get("currency") or metadata.get("currency") or "gbp",
            recipient_type="guide" if recipient_type == "guide" else "company",
            recipient_id=recipient_id,
            recipient_name=recipient_name or "",
            recipient_email=recipient_email,
            sender_id=_optional(metadata.get("senderId")),
            sender_name=_optional(metadata.get("senderName")),
            message=_optional(metadata.get("message")),
            source=source,
        )

    async def _resolve_guide(self, guide_id: Optional[str], guide_name: Optional[str]) -> GuideIdentity:
        # The payer has already paid: a failed lookup degrades, it never fails the confirmation
        try:
            guide = await self.guide_resolver.resolve(guide_id, guide_name)
        except Exception as e:
            logger.error(f"Guide resolution failed for id={guide_id} name={guide_name}: {e}")
            return GuideIdentity(exists=False, id=guide_id, name=guide_name)

        if not guide.exists:
            logger.warning(f"Guide not found for id={guide_id} name={guide_name}, using supplied details")
        return guide
