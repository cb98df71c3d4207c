"""
Core pipeline components
"""
from .crawler import BaseScraper, WebScraper
from .processor import DocumentProcessor
from .embedder import BaseEmbedder, create_embedder
from .sitemap import SitemapResolver, SitemapResult
from .pipeline import CrawlPipeline
from .domain_checker import DomainChecker
from .retriever import Retriever

__all__ = [
    "BaseScraper",
    "WebScraper",
    "DocumentProcessor",
    "BaseEmbedder",
    "create_embedder",
    "SitemapResolver",
    "SitemapResult",
    "CrawlPipeline",
    "DomainChecker",
    "Retriever",
]
