from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, TypeVar

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from storyshelf.core.config import settings

_LOG = logging.getLogger("storyshelf.http")

T = TypeVar("T")


async def run_cancellable(request: Request, work: Callable[[threading.Event], T]) -> T:
    """Run blocking list work in the thread pool, cancelling it if the client leaves."""
    cancel = threading.Event()

    async def _watch_disconnect() -> None:
        try:
            while not cancel.is_set():
                if await request.is_disconnected():
                    _LOG.info("client_disconnected path=%s", request.url.path)
                    cancel.set()
                    return
                await asyncio.sleep(settings.DISCONNECT_POLL_SECONDS)
        except asyncio.CancelledError:
            raise
        except Exception:
            _LOG.debug("disconnect_watch_failed", exc_info=True)

    watcher = asyncio.create_task(_watch_disconnect())
    try:
        return await run_in_threadpool(work, cancel)
    finally:
        watcher.cancel()
