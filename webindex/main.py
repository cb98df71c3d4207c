import time
import logging
from contextlib import asynccontextmanager # Import for lifespan management

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from webindex.api.routers import health, crawl, domain_check, search, sitemap
from webindex.config import settings
from webindex.core.crawler import WebScraper
from webindex.core.domain_checker import DomainChecker
from webindex.core.embedder import create_embedder
from webindex.core.pipeline import CrawlPipeline
from webindex.core.processor import DocumentProcessor
from webindex.core.retriever import Retriever
from webindex.core.sitemap import SitemapResolver
from webindex.services.vector_store import create_vector_store
from webindex.utils.logger import setup_logging

# Configure logging
setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Builds the shared clients once and hands them to the routers through app.state.
    """
    logger.info("Application startup...")
    http_client = httpx.AsyncClient(
        headers={"User-Agent": settings.CRAWLER_USER_AGENT},
        timeout=settings.CRAWLER_REQUEST_TIMEOUT,
        follow_redirects=True,
    )
    embedder = create_embedder(settings)
    vector_store = create_vector_store(settings)
    scraper = WebScraper(client=http_client, max_retries=settings.CRAWLER_MAX_RETRIES)

    app.state.vector_store = vector_store
    app.state.sitemap_resolver = SitemapResolver(client=http_client, max_urls=settings.MAX_URLS_TO_CRAWL)
    app.state.retriever = Retriever(embedder=embedder, vector_store=vector_store, default_top_k=settings.RETRIEVER_TOP_K)
    app.state.domain_checker = DomainChecker(vector_store=vector_store)
    app.state.pipeline = CrawlPipeline(
        scraper=scraper,
        embedder=embedder,
        vector_store=vector_store,
        processor=DocumentProcessor(chunk_size=settings.CHUNK_SIZE, max_chunks=settings.MAX_CHUNKS_PER_DOC),
        max_urls=settings.CRAWL_BATCH_LIMIT,
        embedding_delay=settings.EMBEDDING_DELAY_SECONDS,
        url_delay=settings.URL_DELAY_SECONDS,
        progress_interval=settings.EMBEDDING_PROGRESS_INTERVAL,
    )
    yield # Application runs
    logger.info("Application shutdown...")
    await http_client.aclose()

# Create FastAPI app instance
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Indexes web pages into a multi-user embedding store and answers similarity searches.",
    lifespan=lifespan
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Missing or malformed input is a 400, not FastAPI's default 422.
    """
    errors = exc.errors()
    fields = ", ".join(".".join(str(part) for part in err["loc"] if part != "body") for err in errors)
    logger.warning(f"Invalid request to {request.url.path}: {fields}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"Invalid or missing fields: {fields}"},
    )

# Add a middleware to log requests
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log incoming requests and their processing time.
    """
    start_time = time.time()
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    response = await call_next(request)
    process_time = time.time() - start_time
    logger.info(f"Request finished: {request.method} {request.url.path} with status {response.status_code} in {process_time:.4f}s")
    return response

# Include API routers
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["Health"])
app.include_router(crawl.router, prefix=settings.API_PREFIX, tags=["Indexing"])
app.include_router(domain_check.router, prefix=settings.API_PREFIX, tags=["Indexing"])
app.include_router(sitemap.router, prefix=settings.API_PREFIX, tags=["Sitemap"])
app.include_router(search.router, prefix=settings.API_PREFIX, tags=["Search"])

@app.get("/", tags=["Root"])
async def read_root():
    """
    Root endpoint listing the available endpoints.
    """
    prefix = settings.API_PREFIX
    return {
        "message": f"Welcome to {settings.APP_NAME}!",
        "version": settings.APP_VERSION,
        "endpoints": {
            "health": f"GET {prefix}/health",
            "crawl": f"POST {prefix}/crawl",
            "domain_check": f"GET {prefix}/domain-check",
            "sitemap": f"POST {prefix}/sitemap",
            "search": f"POST {prefix}/search",
        },
    }
