# services/guide_resolver.py
import logging
from typing import Any, Dict, Optional

from app.models.tip_model import GuideIdentity

logger = logging.getLogger("safaripay.guides")

# Checked in this order; the first matching field wins
GUIDE_NAME_FIELDS = ("name", "displayName", "fullName", "username")
GUIDE_SCAN_LIMIT = 50


def _identity(guide: Dict[str, Any], fallback_name: Optional[str]) -> GuideIdentity:
    name = next((guide.get(f) for f in GUIDE_NAME_FIELDS if guide.get(f)), None)
    return GuideIdentity(
        exists=True,
        id=guide["id"],
        name=name or fallback_name,
        email=guide.get("email"),
    )


class GuideResolver:
    """
    Best-effort lookup of the guide behind a tip.

    Order: document id, exact name match per field, then a case-insensitive
    scan over the first GUIDE_SCAN_LIMIT guides (document-id order). When
    several guides share a name the first match in that order is returned.
    """

    def __init__(self, store, scan_limit: int = GUIDE_SCAN_LIMIT):
        self.store = store
        self.scan_limit = scan_limit

    async def resolve(self, guide_id: Optional[str] = None, guide_name: Optional[str] = None) -> GuideIdentity:
        if guide_id:
            guide = await self.store.get_guide(guide_id)
            if guide:
                return _identity(guide, guide_name)
            logger.info(f"No guide with id {guide_id}, falling back to name lookup")

        if guide_name:
            for field in GUIDE_NAME_FIELDS:
                guide = await self.store.find_guide_by_field(field, guide_name)
                if guide:
                    return _identity(guide, guide_name)

            wanted = guide_name.strip().lower()
            for guide in await self.store.list_guides(self.scan_limit):
                for field in GUIDE_NAME_FIELDS:
                    value = guide.get(field)
                    if isinstance(value, str) and value.strip().lower() == wanted:
                        return _identity(guide, guide_name)

        return GuideIdentity(exists=False, name=guide_name)
