import logging
from fastapi import APIRouter, Depends, HTTPException, status
from webindex.models.schemas import SitemapRequest, SitemapResponse
from webindex.core.sitemap import SitemapResolver
from webindex.dependencies import get_sitemap_resolver
from webindex.utils.exceptions import WebIndexError
from webindex.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/sitemap", response_model=SitemapResponse, summary="Resolve a site's sitemap to page URLs")
async def sitemap(payload: SitemapRequest, resolver: SitemapResolver = Depends(get_sitemap_resolver)):
    """
    Finds the site's sitemap via robots.txt and returns up to MAX_URLS_TO_CRAWL page URLs.
    Fails with 403 when robots.txt disallows the URL and 404 when no URLs are found.
    """
    logger.info(f"Extracting sitemap from {payload.url}")
    try:
        result = await resolver.resolve(payload.url)
    except WebIndexError as e:
        logger.warning(f"Sitemap extraction failed for {payload.url}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error in sitemap extraction for {payload.url}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {e}" if settings.DEBUG else "Internal server error"
        )

    return SitemapResponse(
        success=True,
        sitemap_url=result.sitemap_url,
        urls=result.urls,
        total_urls=result.total_urls,
        is_english_sitemap=result.is_english_sitemap,
    )
