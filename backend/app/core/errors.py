"""
Error types for the checkout and verification flows.

Every error carries a machine-readable ``code`` and the HTTP status it maps to.
The exception handler in ``main.py`` renders them as ``{"error", "code"}``.
"""

from typing import Any, Dict, Optional

# Client input
MISSING_USER_ID = "MISSING_USER_ID"
MISSING_AMOUNT = "MISSING_AMOUNT"
INVALID_AMOUNT = "INVALID_AMOUNT"
MISSING_SESSION_ID = "MISSING_SESSION_ID"
INVALID_REQUEST = "INVALID_REQUEST"
INVALID_RECIPIENT_TYPE = "INVALID_RECIPIENT_TYPE"
MISSING_RECIPIENT_ID = "MISSING_RECIPIENT_ID"
NOT_A_TIP_SESSION = "NOT_A_TIP_SESSION"

# Business rules
FREE_BOOKING = "FREE_BOOKING"

# Processor / infrastructure
SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
SIGNATURE_INVALID = "SIGNATURE_INVALID"
UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
NOT_CONFIGURED = "NOT_CONFIGURED"


class PaymentsError(Exception):
    status_code = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def public_message(self, production: bool) -> str:
        return self.message


class ClientInputError(PaymentsError):
    status_code = 400


class BusinessRuleRejection(PaymentsError):
    status_code = 400


class SessionNotFound(PaymentsError):
    status_code = 404

    def __init__(self, message: str = "Checkout session not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(SESSION_NOT_FOUND, message, details)


class SignatureVerificationError(PaymentsError):
    status_code = 400

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(SIGNATURE_INVALID, message)


class UpstreamError(PaymentsError):
    """A processor, data-store or email-provider call failed. Safe to retry."""

    status_code = 500
    SAFE_MESSAGE = "Payment service temporarily unavailable. Please try again."

    def __init__(self, message: str, service: str = "stripe", details: Optional[Dict[str, Any]] = None):
        super().__init__(UPSTREAM_UNAVAILABLE, message, details)
        self.service = service

    def public_message(self, production: bool) -> str:
        return self.SAFE_MESSAGE if production else self.message


class ConfigurationError(PaymentsError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(NOT_CONFIGURED, message)
