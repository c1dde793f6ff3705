# services/checkout_service.py
"""
Checkout intent builder.

Turns a raw booking or tip request into the parameters of one Stripe hosted
checkout session. Validation is fail-fast: the first violated rule raises and
nothing is sent to Stripe. Every field needed later by the reconciler is
written into the session metadata, with ``'none'`` / ``'0'`` placeholders
instead of missing keys.
"""
import logging
import time
from decimal import Decimal
from typing import Dict, Optional
from urllib.parse import urlencode

from app.core.config import Settings
from app.core.errors import (
    BusinessRuleRejection,
    ClientInputError,
    FREE_BOOKING,
    INVALID_AMOUNT,
    INVALID_RECIPIENT_TYPE,
    MISSING_AMOUNT,
    MISSING_RECIPIENT_ID,
    MISSING_USER_ID,
)
from app.models.checkout_model import BookingCheckoutRequest, CheckoutIntent, TipCheckoutRequest
from app.utils.currency import amount_str, format_money, normalize_currency, parse_amount, to_minor_units

logger = logging.getLogger("safaripay.checkout")

DEFAULT_PACKAGE_NAME = "Kenya Safari Package"
DEFAULT_BOOKING_DESCRIPTION = "KenyaOnABudget Safaris booking"
DEFAULT_GUIDE_NAME = "your guide"
NONE = "none"
RECIPIENT_TYPES = ("guide", "company")
# Stripe caps metadata values at 500 characters
METADATA_VALUE_LIMIT = 500


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _meta(value: Optional[str]) -> str:
    if not value:
        return NONE
    return value[:METADATA_VALUE_LIMIT]


# --------------------------------------------------------------
# BOOKINGS
# --------------------------------------------------------------
def _booking_copy(
    package_name: str,
    coupon_code: Optional[str],
    original: Decimal,
    discount: Decimal,
    currency: str,
) -> Dict[str, str]:
    if not coupon_code:
        return {"name": package_name, "description": DEFAULT_BOOKING_DESCRIPTION}
    return {
        "name": f"{package_name} (Coupon: {coupon_code})",
        "description": (
            f"Original price: {format_money(original, currency)}, "
            f"Discount: {format_money(discount, currency)}"
        ),
    }


def build_booking_checkout(request: BookingCheckoutRequest, settings: Settings) -> CheckoutIntent:
    user_id = _clean(request.userId)
    if not user_id:
        raise ClientInputError(MISSING_USER_ID, "Missing userId")

    if request.amount is None:
        raise ClientInputError(MISSING_AMOUNT, "Missing amount")

    amount = parse_amount(request.amount)
    if amount == 0:
        logger.info("Detected free booking (100% discount). This should be handled client-side.")
        raise BusinessRuleRejection(FREE_BOOKING, "Free bookings should be processed without Stripe")
    if amount < 0:
        raise ClientInputError(INVALID_AMOUNT, "Amount must be greater than zero")
    unit_amount = to_minor_units(amount)
    if unit_amount == 0:
        raise ClientInputError(INVALID_AMOUNT, "Amount is below the smallest chargeable unit")

    currency = normalize_currency(request.currency, settings.supported_currencies, settings.DEFAULT_CURRENCY)
    original = parse_amount(request.originalAmount) or amount
    discount = parse_amount(request.discountAmount) or Decimal("0")
    coupon_code = _clean(request.couponCode)
    package_name = _clean(request.packageName) or DEFAULT_PACKAGE_NAME
    package_id = _clean(request.packageId)
    timestamp = _now_ms()

    success_query = urlencode({"userId": user_id, "timestamp": timestamp})
    base_url = settings.FRONTEND_URL.rstrip("/")

    params = {
        "payment_method_types": ["card"],
        "line_items": [{
            "price_data": {
                "currency": currency,
                "product_data": _booking_copy(package_name, coupon_code, original, discount, currency),
                "unit_amount": unit_amount,
            },
            "quantity": 1,
        }],
        "mode": "payment",
        # {CHECKOUT_SESSION_ID} is substituted by Stripe and must not be url-encoded
        "success_url": f"{base_url}/payment-success.html?session_id={{CHECKOUT_SESSION_ID}}&{success_query}",
        "cancel_url": f"{base_url}/packages/payment-cancelled.html?{success_query}",
        "client_reference_id": user_id,
        "metadata": {
            "paymentType": "booking",
            "userId": user_id,
            "timestamp": str(timestamp),
            "packageId": _meta(package_id),
            "packageName": package_name,
            "originalAmount": amount_str(original),
            "discountAmount": amount_str(discount),
            "couponCode": coupon_code or NONE,
            "hasCoupon": "true" if coupon_code else "false",
            "currency": currency,
        },
    }

    logger.info(
        f"Booking checkout built | user={user_id} package={package_id} "
        f"amount={unit_amount} {currency} coupon={coupon_code or '-'}"
    )
    return CheckoutIntent(
        payment_type="booking",
        params=params,
        currency=currency,
        unit_amount=unit_amount,
        timestamp=timestamp,
    )


# --------------------------------------------------------------
# TIPS
# --------------------------------------------------------------
def build_tip_checkout(request: TipCheckoutRequest, settings: Settings) -> CheckoutIntent:
    amount = parse_amount(request.amount)
    if amount is None or amount <= 0:
        raise ClientInputError(INVALID_AMOUNT, "Tip amount must be greater than zero")
    unit_amount = to_minor_units(amount)
    if unit_amount == 0:
        raise ClientInputError(INVALID_AMOUNT, "Tip amount is below the smallest chargeable unit")

    recipient_type = (_clean(request.recipientType) or "company").lower()
    if recipient_type not in RECIPIENT_TYPES:
        raise ClientInputError(INVALID_RECIPIENT_TYPE, "recipientType must be 'guide' or 'company'")

    recipient_id = _clean(request.recipientId)
    if recipient_type == "guide" and not recipient_id:
        raise ClientInputError(MISSING_RECIPIENT_ID, "recipientId is required when tipping a guide")

    currency = normalize_currency(request.currency, settings.supported_currencies, settings.DEFAULT_CURRENCY)
    timestamp = _now_ms()

    if recipient_type == "guide":
        recipient_name = _clean(request.recipientName) or DEFAULT_GUIDE_NAME
        product_name = f"Tip for {recipient_name}"
    else:
        recipient_id = None
        recipient_name = _clean(request.recipientName) or settings.COMPANY_NAME
        product_name = f"Tip for the {settings.COMPANY_NAME} team"

    base_url = settings.FRONTEND_URL.rstrip("/")
    success_url = (
        _clean(request.successUrl)
        or settings.TIP_SUCCESS_URL
        or f"{base_url}/tip-success.html?session_id={{CHECKOUT_SESSION_ID}}"
    )
    cancel_url = _clean(request.cancelUrl) or settings.TIP_CANCEL_URL or f"{base_url}/tip-cancelled.html"

    metadata = {
        "paymentType": "tip",
        "amount": amount_str(amount),
        "currency": currency,
        "recipientType": recipient_type,
        "recipientId": _meta(recipient_id),
        "recipientName": _meta(recipient_name),
        "senderId": _meta(_clean(request.userId)),
        "senderName": _meta(_clean(request.userName)),
        "message": _meta(_clean(request.message)),
        "timestamp": str(timestamp),
    }

    params = {
        "payment_method_types": ["card"],
        "line_items": [{
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": product_name,
                    "description": f"Thank you for supporting {settings.COMPANY_NAME}",
                },
                "unit_amount": unit_amount,
            },
            "quantity": 1,
        }],
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "payment_intent_data": {"metadata": metadata},
    }
    sender_id = _clean(request.userId)
    if sender_id:
        params["client_reference_id"] = sender_id

    logger.info(f"Tip checkout built | {recipient_type}={recipient_id or '-'} amount={unit_amount} {currency}")
    return CheckoutIntent(
        payment_type="tip",
        params=params,
        currency=currency,
        unit_amount=unit_amount,
        timestamp=timestamp,
    )
