# routers/system_router.py
import logging

from fastapi import APIRouter

from app.core.config import settings
from app.core.errors import ConfigurationError, UpstreamError
from app.tasks.keep_alive import ping_health

router = APIRouter(tags=["System"])
logger = logging.getLogger("safaripay")


@router.get("/health")
async def health_check():
    return {"status": "healthy", "message": "Payment server is running"}


async def _ping(name: str, url: str) -> dict:
    try:
        data = await ping_health(url, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    except Exception as e:
        logger.error(f"Failed to ping {name} app: {e}")
        raise UpstreamError(f"Failed to ping {name} app: {e}", service=name)
    logger.info(f"🏓 Pinged {name} app successfully: {data}")
    return data


@router.get("/ping-companion")
async def ping_companion():
    if not settings.COMPANION_APP_URL:
        raise ConfigurationError("Companion app URL not configured")
    data = await _ping("companion", settings.COMPANION_APP_URL)
    return {"success": True, "companionStatus": data}


@router.get("/ping-activity")
async def ping_activity():
    if not settings.ACTIVITY_APP_URL:
        raise ConfigurationError("Activity app URL not configured")
    data = await _ping("activity", settings.ACTIVITY_APP_URL)
    return {"success": True, "activityStatus": data}
