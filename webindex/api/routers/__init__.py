# API routers package
"""
API routers initialization
"""
from .health import router as health_router
from .crawl import router as crawl_router
from .domain_check import router as domain_check_router
from .search import router as search_router
from .sitemap import router as sitemap_router

__all__ = ["health_router", "crawl_router", "domain_check_router", "search_router", "sitemap_router"]
