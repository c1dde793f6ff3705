# core/stripe_gateway.py
import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional

import stripe

from app.core.errors import SessionNotFound, SignatureVerificationError, UpstreamError
from app.utils.blocking import run_blocking

logger = logging.getLogger("safaripay.stripe")


def _plain(obj: Any) -> Dict[str, Any]:
    """SDK objects are not dicts; callers only ever see plain nested dicts."""
    if isinstance(obj, stripe.StripeObject):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    """
    Thin async wrapper over the Stripe SDK for hosted checkout.

    Session creation is never retried (no idempotency key is sent); session
    retrieval is retried once on connection failures and timeouts.
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: float = 15.0,
        read_retries: int = 1,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self.read_retries = read_retries

    async def create_checkout_session(self, params: Dict[str, Any]) -> Mapping[str, Any]:
        try:
            session = await run_blocking(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                timeout=self.timeout,
                **params,
            )
        except asyncio.TimeoutError:
            logger.error("Timed out creating checkout session")
            raise UpstreamError("Timed out creating checkout session")
        except stripe.StripeError as e:
            logger.error(f"Stripe rejected checkout session: {e}")
            raise UpstreamError(str(e) or "Stripe error while creating checkout session")

        session = _plain(session)
        logger.info(f"Checkout session created: {session['id']}")
        return session

    async def retrieve_checkout_session(self, session_id: str) -> Mapping[str, Any]:
        attempts = self.read_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                session = await run_blocking(
                    stripe.checkout.Session.retrieve,
                    session_id,
                    api_key=self.api_key,
                    timeout=self.timeout,
                )
                return _plain(session)
            except stripe.InvalidRequestError as e:
                logger.warning(f"Checkout session {session_id} not retrievable: {e}")
                raise SessionNotFound(details={"session_id": session_id})
            except (stripe.APIConnectionError, asyncio.TimeoutError) as e:
                if attempt < attempts:
                    logger.warning(f"Retrying session {session_id} after connection failure: {e!r}")
                    continue
                logger.error(f"Stripe unreachable for session {session_id}: {e!r}")
                raise UpstreamError("Could not reach Stripe to retrieve checkout session")
            except stripe.StripeError as e:
                logger.error(f"Stripe error retrieving session {session_id}: {e}")
                raise UpstreamError(str(e) or "Stripe error while retrieving checkout session")

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        """Verify the Stripe-Signature header against the raw body and parse the event."""
        if not signature:
            logger.warning("Webhook received without Stripe-Signature header")
            raise SignatureVerificationError("Missing Stripe-Signature header")
        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, stripe.Webhook.DEFAULT_TOLERANCE
            )
            # Parsed as plain JSON so handlers get dicts, not SDK objects
            return json.loads(body)
        except stripe.SignatureVerificationError:
            logger.warning("Invalid Stripe webhook signature")
            raise SignatureVerificationError()
        except ValueError:
            logger.warning("Webhook body is not valid JSON")
            raise SignatureVerificationError("Invalid webhook payload")
