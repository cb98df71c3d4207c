"""
Dependencies for FastAPI endpoints
"""
from typing import Optional

from fastapi import HTTPException, Request, status

from webindex.core.domain_checker import DomainChecker
from webindex.core.pipeline import CrawlPipeline
from webindex.core.retriever import Retriever
from webindex.core.sitemap import SitemapResolver
from webindex.services.vector_store import VectorStore

# Clients are built once in the application lifespan and kept on app.state.


def _from_state(request: Request, name: str):
    component = getattr(request.app.state, name, None)
    if component is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Service component '{name}' is not initialized."
        )
    return component


def get_vector_store(request: Request) -> VectorStore:
    return _from_state(request, "vector_store")


def get_pipeline(request: Request) -> CrawlPipeline:
    return _from_state(request, "pipeline")


def get_domain_checker(request: Request) -> DomainChecker:
    return _from_state(request, "domain_checker")


def get_retriever(request: Request) -> Retriever:
    return _from_state(request, "retriever")


def get_sitemap_resolver(request: Request) -> SitemapResolver:
    return _from_state(request, "sitemap_resolver")


async def validate_domain_check_params(
    url: Optional[str] = None,
    domain: Optional[str] = None,
    userEmail: Optional[str] = None,
) -> dict:
    """
    Validate domain-check query parameters: exactly one of url/domain is required.

    Returns:
        The cleaned parameters, raises HTTPException if invalid
    """
    url = url.strip() if url else None
    domain = domain.strip() if domain else None
    if not url and not domain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either URL or domain parameter is required"
        )
    if url and domain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide either URL or domain, not both"
        )
    return {"url": url, "domain": domain, "user_email": userEmail.strip() if userEmail else None}
