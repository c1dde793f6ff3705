# tasks/keep_alive.py
import asyncio
import logging
from typing import Dict, List, Optional

import httpx

logger = logging.getLogger("safaripay.keepalive")


async def ping_health(base_url: str, timeout: float = 15.0) -> dict:
    """GET <base_url>/health and return its JSON body. Raises on network or HTTP errors."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(f"{base_url.rstrip('/')}/health")
        response.raise_for_status()
        return response.json()


async def ping_loop(name: str, base_url: str, interval: float, timeout: float = 15.0):
    logger.info(f"🏓 Keep-alive for {name} every {interval:.0f}s → {base_url}")
    while True:
        await asyncio.sleep(interval)
        try:
            await ping_health(base_url, timeout)
            logger.info(f"🏓 {name} keep-alive ping sent")
        except Exception as e:
            logger.error(f"{name} keep-alive ping failed: {e}")


class KeepAlive:
    """
    Owns the background ping tasks so the app can start and cancel them as a unit.
    Shares no state with request handling.
    """

    def __init__(self, targets: Dict[str, tuple], timeout: float = 15.0):
        # name -> (base_url, interval_seconds)
        self.targets = targets
        self.timeout = timeout
        self._tasks: List[asyncio.Task] = []

    @classmethod
    def from_settings(cls, settings) -> "KeepAlive":
        targets = {"self": (settings.self_url, settings.SELF_PING_INTERVAL_SECONDS)}
        if settings.COMPANION_APP_URL:
            targets["companion"] = (settings.COMPANION_APP_URL, settings.COMPANION_PING_INTERVAL_SECONDS)
        else:
            logger.warning("⚠️ COMPANION_APP_URL not configured, companion keep-alive disabled")
        return cls(targets, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if self.running:
            return
        loop = loop or asyncio.get_running_loop()
        self._tasks = [
            loop.create_task(ping_loop(name, url, interval, self.timeout), name=f"keepalive-{name}")
            for name, (url, interval) in self.targets.items()
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("🛑 Keep-alive tasks stopped")
