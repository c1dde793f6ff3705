# models/tip_model.py
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TipRecord(BaseModel):
    """
    One completed tip.
    Collection: "tips", document id = payment intent id (session id if absent).
    Written once, never updated.
    """
    id: str
    payment_intent_id: Optional[str] = None
    session_id: str

    amount: float
    currency: str

    recipient_type: Literal["guide", "company"]
    recipient_id: Optional[str] = None
    recipient_name: str
    recipient_email: Optional[str] = None

    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    message: Optional[str] = None

    status: Literal["completed"] = "completed"
    source: Literal["verify", "webhook"] = "verify"
    created_at: datetime = Field(default_factory=_utcnow)

    def to_payment(self) -> dict:
        """Shape returned to the tipping page."""
        return {
            "amount": self.amount,
            "currency": self.currency,
            "recipientType": self.recipient_type,
            "recipientId": self.recipient_id,
            "recipientName": self.recipient_name,
            "status": self.status,
        }


class EmailNotification(BaseModel):
    """Collection: "email_notifications" (append-only delivery log)."""
    to: str
    subject: str
    kind: Literal["guide_tip", "company_tip", "admin_copy"]
    tip_id: str
    status: Literal["sent", "failed"]
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class GuideIdentity(BaseModel):
    exists: bool
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class TipOutcome(BaseModel):
    """Result of reconciling a tip session. ``created`` is True only for the call that persisted the record."""
    paid: bool
    status: Optional[str] = None
    record: Optional[TipRecord] = None
    created: bool = False
