# services/notification_service.py
import logging
from typing import Iterable, List, Optional, Tuple

from app.models.tip_model import EmailNotification, TipRecord
from app.utils.blocking import run_blocking
from app.utils.currency import format_money
from app.utils.tip_emails import render_tip_email

logger = logging.getLogger("safaripay.notifications")


class TipNotifier:
    """
    Fire-and-forget emails for a completed tip: one to the recipient (guide or
    company inbox) and one copy per admin address. Each send is independent
    and never retried; failures are logged and swallowed.
    """

    def __init__(
        self,
        mailer,
        store,
        admin_emails: Iterable[str],
        company_email: Optional[str],
        company_name: str,
        timeout: float = 15.0,
    ):
        self.mailer = mailer
        self.store = store
        self.admin_emails = list(admin_emails)
        self.company_email = company_email
        self.company_name = company_name
        self.timeout = timeout

    def _context(self, record: TipRecord) -> dict:
        return {
            "amount": format_money(record.amount, record.currency),
            "recipient_name": record.recipient_name,
            "recipient_type": record.recipient_type,
            "recipient_id": record.recipient_id or "-",
            "sender_name": record.sender_name or "A happy traveller",
            "message": record.message,
            "company_name": self.company_name,
            "session_id": record.session_id,
            "tip_id": record.id,
        }

    def plan(self, record: TipRecord) -> List[Tuple[str, str]]:
        """(recipient address, template key) pairs for this tip."""
        targets = []
        if record.recipient_type == "guide":
            if record.recipient_email:
                targets.append((record.recipient_email, "guide_tip"))
            else:
                logger.warning(f"No email on file for guide {record.recipient_id or record.recipient_name}")
        elif self.company_email:
            targets.append((self.company_email, "company_tip"))
        targets.extend((admin, "admin_copy") for admin in self.admin_emails)
        return targets

    async def dispatch(self, record: TipRecord) -> None:
        context = self._context(record)
        for to, kind in self.plan(record):
            await self._send_one(record, to, kind, context)

    async def _send_one(self, record: TipRecord, to: str, kind: str, context: dict) -> None:
        subject, html = render_tip_email(kind, context)
        status, error = "sent", None
        try:
            await run_blocking(self.mailer.send, to, subject, html, timeout=self.timeout)
            logger.info(f"📧 {kind} email sent to {to} for tip {record.id}")
        except Exception as e:
            status, error = "failed", str(e) or e.__class__.__name__
            logger.error(f"Failed to send {kind} email to {to} for tip {record.id}: {error}")

        try:
            await self.store.log_email(EmailNotification(
                to=to,
                subject=subject,
                kind=kind,
                tip_id=record.id,
                status=status,
                error=error,
            ))
        except Exception as e:
            logger.error(f"Failed to log {kind} email for tip {record.id}: {e}")
