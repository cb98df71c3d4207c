"""Server-sent event helpers for progress streams."""
import asyncio
import contextlib
import logging
from typing import AsyncIterator, Callable, Optional

from fastapi import Request
from fastapi.responses import StreamingResponse

from webindex.core import progress
from webindex.core.progress import ProgressEvent
from webindex.utils.cancellation import CancellationToken, watch_disconnect

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: ProgressEvent) -> str:
    """Frames one event as a `data: <json>` SSE message."""
    return f"data: {event.to_json()}\n\n"


def stream_events(
    request: Request,
    produce: Callable[[CancellationToken], AsyncIterator[ProgressEvent]],
) -> StreamingResponse:
    """
    Streams the events produced for this request, cancelling the producer's
    token when the client disconnects. The stream always ends on a terminal
    event: a producer that stops early or raises is closed with an `error` event.
    """
    token = CancellationToken()

    async def iterator() -> AsyncIterator[bytes]:
        watcher = asyncio.create_task(watch_disconnect(request, token))
        last_event: Optional[ProgressEvent] = None
        failure = "Stream ended without a result"
        try:
            try:
                async for item in produce(token):
                    last_event = item
                    yield format_sse(item).encode("utf-8")
            except Exception as e:
                failure = str(e) or type(e).__name__
                logger.error(f"Progress stream for {request.url.path} failed: {failure}")
                last_event = None

            if last_event is None or not last_event.is_terminal:
                logger.warning(f"Closing progress stream for {request.url.path} with an error event.")
                yield format_sse(progress.event(progress.ERROR, failure, error=failure)).encode("utf-8")
        finally:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    return StreamingResponse(iterator(), media_type="text/event-stream", headers=SSE_HEADERS)
