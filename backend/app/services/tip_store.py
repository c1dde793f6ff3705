# services/tip_store.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import AlreadyExists, GoogleAPICallError
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.errors import UpstreamError
from app.models.tip_model import EmailNotification, TipRecord
from app.utils.blocking import run_blocking

logger = logging.getLogger("safaripay.store")

TIPS = "tips"
GUIDES = "guides"
EMAIL_NOTIFICATIONS = "email_notifications"


class TipStore:
    """Firestore access for tips, guides and the email log. Tips and emails are append-only."""

    def __init__(self, db, timeout: float = 15.0):
        self.db = db
        self.timeout = timeout

    async def _call(self, fn, *args, **kwargs):
        try:
            return await run_blocking(fn, *args, timeout=self.timeout, **kwargs)
        except asyncio.TimeoutError:
            raise UpstreamError("Timed out talking to Firestore", service="firestore")
        except AlreadyExists:
            raise
        except GoogleAPICallError as e:
            raise UpstreamError(f"Firestore error: {e}", service="firestore")

    # ----------------------------------------------------------
    # TIPS
    # ----------------------------------------------------------
    async def get_tip(self, tip_id: str) -> Optional[TipRecord]:
        doc = await self._call(self.db.collection(TIPS).document(tip_id).get)
        if not doc.exists:
            return None
        data = doc.to_dict()
        data["id"] = doc.id
        return TipRecord(**data)

    async def claim_tip(self, record: TipRecord) -> bool:
        """
        Atomically create the tip document. Returns False when another caller
        (verify poll or webhook) already wrote it: first writer wins.
        """
        doc_ref = self.db.collection(TIPS).document(record.id)
        try:
            await self._call(doc_ref.create, record.model_dump(exclude={"id"}))
        except AlreadyExists:
            logger.info(f"♻️ Tip {record.id} already recorded")
            return False
        logger.info(f"💾 Tip {record.id} recorded | {record.amount} {record.currency} → {record.recipient_type}")
        return True

    # ----------------------------------------------------------
    # GUIDES
    # ----------------------------------------------------------
    async def get_guide(self, guide_id: str) -> Optional[Dict[str, Any]]:
        doc = await self._call(self.db.collection(GUIDES).document(guide_id).get)
        if not doc.exists:
            return None
        return {**doc.to_dict(), "id": doc.id}

    async def find_guide_by_field(self, field: str, value: str) -> Optional[Dict[str, Any]]:
        query = self.db.collection(GUIDES).where(filter=FieldFilter(field, "==", value)).limit(1)
        docs = await self._call(query.get)
        if not docs:
            return None
        return {**docs[0].to_dict(), "id": docs[0].id}

    async def list_guides(self, limit: int) -> List[Dict[str, Any]]:
        # Firestore returns documents in document-id order when no order_by is given
        docs = await self._call(self.db.collection(GUIDES).limit(limit).get)
        return [{**doc.to_dict(), "id": doc.id} for doc in docs]

    # ----------------------------------------------------------
    # EMAIL LOG
    # ----------------------------------------------------------
    async def log_email(self, notification: EmailNotification) -> None:
        await self._call(self.db.collection(EMAIL_NOTIFICATIONS).add, notification.model_dump())
