import asyncio
from functools import partial
from typing import Optional


async def run_blocking(fn, *args, timeout: Optional[float] = None, **kwargs):
    """
    Run a blocking SDK call (Stripe, Firestore, Resend) in the default executor.
    Raises asyncio.TimeoutError when ``timeout`` seconds pass without a result.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, partial(fn, *args, **kwargs))
    if timeout is None:
        return await future
    return await asyncio.wait_for(future, timeout)
