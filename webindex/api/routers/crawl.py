import logging
from fastapi import APIRouter, Depends, Request
from webindex.models.schemas import CrawlRequest
from webindex.core.pipeline import CrawlPipeline
from webindex.dependencies import get_pipeline
from webindex.utils.sse import stream_events

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/crawl", summary="Index a list of URLs, streaming progress events")
async def crawl(payload: CrawlRequest, request: Request, pipeline: CrawlPipeline = Depends(get_pipeline)):
    """
    Scrapes, chunks, embeds and stores each URL for the requesting user, or grants the
    user access when the URL's domain is already indexed. Progress is streamed as
    server-sent events ending with a `complete` or `error` event.
    """
    logger.info(f"Received crawl request for {len(payload.urls)} URLs from {payload.user_email}")
    return stream_events(request, lambda token: pipeline.run(payload.urls, payload.user_email, token))
