# models/checkout_model.py
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional, Union

# Amounts are passed through untouched; parse_amount decides what is a number
# (JSON true must not become 1.0, "0" must stay distinguishable)
AmountIn = Any
IdIn = Optional[Union[str, int]]


class BookingCheckoutRequest(BaseModel):
    """Payload sent by the booking page when the traveller clicks "Pay"."""
    packageId: IdIn = None
    userId: IdIn = None
    packageName: Optional[str] = None
    originalAmount: AmountIn = Field(default=None, description="Price before discount")
    amount: AmountIn = Field(default=None, description="Final payable amount (major units)")
    couponCode: Optional[str] = None
    discountAmount: AmountIn = None
    currency: Optional[str] = None


class TipCheckoutRequest(BaseModel):
    """Payload sent by the tipping page."""
    amount: AmountIn = None
    currency: Optional[str] = None
    recipientType: Optional[str] = "company"
    recipientId: IdIn = None
    recipientName: Optional[str] = None
    userId: IdIn = None
    userName: Optional[str] = None
    message: Optional[str] = None
    successUrl: Optional[str] = None
    cancelUrl: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    sessionId: Optional[str] = None


class CheckoutIntent(BaseModel):
    """Everything needed for one Stripe "create session" call."""
    payment_type: Literal["booking", "tip"]
    params: Dict[str, Any]
    currency: str
    unit_amount: int
    timestamp: int


class BookingOutcome(BaseModel):
    paid: bool
    status: Optional[str] = None
    amount: Optional[float] = None
    originalAmount: Optional[float] = None
    discountAmount: Optional[float] = None
    finalAmount: Optional[float] = None
    couponCode: Optional[str] = None
    customerId: Optional[str] = None
    currency: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    def to_response(self) -> Dict[str, Any]:
        if not self.paid:
            return {"paid": False, "status": self.status, "metadata": self.metadata}
        return {
            "paid": True,
            "amount": self.amount,
            "originalAmount": self.originalAmount,
            "discountAmount": self.discountAmount,
            "finalAmount": self.finalAmount,
            "couponCode": self.couponCode,
            "customerId": self.customerId,
            "currency": self.currency,
            "metadata": self.metadata,
        }
