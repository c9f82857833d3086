"""
Thread offload for blocking store calls.

Routes are async; services and the repository are synchronous SQLAlchemy
code. ``run_sync`` runs one service call in the default thread pool with a
deadline so no request waits on the store indefinitely.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Callable, TypeVar

from app.core.errors import Unexpected

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_S = 30.0
SLOW_CALL_MS = 500.0


async def run_sync(func: Callable[..., T], *args: Any, timeout: float = DEFAULT_TIMEOUT_S, **kwargs: Any) -> T:
    """
    Await ``func(*args, **kwargs)`` executed in a worker thread.

    Exceptions raised by ``func`` (ServiceError included) propagate unchanged.
    Exceeding ``timeout`` raises ``Unexpected`` with the store-failure code;
    the abandoned call's own transaction still commits or rolls back as a
    unit, so no partial write is left behind.
    """
    name = getattr(func, "__qualname__", None) or repr(func)
    started = time.perf_counter()
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(functools.partial(func, *args, **kwargs)), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.error("Store call timed out: %s after %.1fs", name, timeout)
        raise Unexpected(code="CMT-DB-001", detail=f"{name} exceeded {timeout}s")
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > SLOW_CALL_MS:
            logger.warning("Slow store call: %s took %.0fms", name, elapsed_ms)
