import asyncio
import logging
from typing import Optional

from fastapi import Request

from webindex.utils.exceptions import CrawlCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Cooperative cancellation signal threaded through a streaming request.
    Long-running flows call raise_if_cancelled() before every external call.
    """
    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CrawlCancelledError(f"Operation cancelled: {self.reason}")

    async def sleep(self, seconds: float) -> None:
        """Sleeps for the given time, waking up early (and raising) on cancellation."""
        self.raise_if_cancelled()
        if seconds > 0:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
        self.raise_if_cancelled()


async def watch_disconnect(request: Request, token: CancellationToken, poll_interval: float = 0.5) -> None:
    """Cancels the token once the client side of the request has gone away."""
    while not token.cancelled:
        if await request.is_disconnected():
            logger.info(f"Client disconnected from {request.url.path}. Cancelling stream.")
            token.cancel("client disconnected")
            return
        await asyncio.sleep(poll_interval)
