from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- API Request/Response Schemas ---
# The wire format is camelCase; Python attributes stay snake_case.

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CrawlRequest(CamelModel):
    """
    Schema for the POST /crawl request body.
    """
    urls: List[str] = Field(
        ...,
        min_length=1,
        description="URLs to index, processed in order.",
        examples=[["https://docs.example.com/getting-started"]]
    )
    user_email: str = Field(
        ...,
        min_length=1,
        description="Identity of the user who will own (or be granted) the indexed content.",
        examples=["user@example.com"]
    )


class SearchRequest(CamelModel):
    """
    Schema for the POST /search request body.
    """
    query: str = Field(..., min_length=1, description="Text to search for.", examples=["How do I install it?"])
    user_email: str = Field(..., min_length=1, description="Only content owned by this user is searched.")
    top_k: Optional[int] = Field(None, gt=0, description="Maximum number of results (defaults to RETRIEVER_TOP_K).")
    domain_filter: Optional[str] = Field(None, description="Restrict results to one domain.", examples=["docs.example.com"])


class SearchResult(CamelModel):
    score: float = Field(..., description="Cosine similarity to the query; higher is better.")
    url: str
    text: str
    chunk_index: int
    domain: str
    timestamp: Optional[str] = None


class SearchResponse(CamelModel):
    success: bool = True
    query: str
    results: List[SearchResult]


class SitemapRequest(CamelModel):
    """
    Schema for the POST /sitemap request body.
    """
    url: str = Field(..., min_length=1, description="Any URL of the site whose sitemap to resolve.")


class SitemapResponse(CamelModel):
    success: bool = True
    sitemap_url: str
    urls: List[str]
    total_urls: int = Field(..., description="Number of URLs in the sitemap before truncation.")
    is_english_sitemap: bool


class CrawlUrlResult(CamelModel):
    """
    Per-URL success entry reported in the crawl `complete` event.
    """
    url: str
    success: bool = True
    chunks: int = 0
    vectors: int = 0
    was_already_indexed: bool = False
    vectors_updated: Optional[int] = None


class CrawlUrlError(CamelModel):
    """
    Per-URL failure entry reported in the crawl `complete` event.
    """
    url: str
    error: str


class HealthCheckResponse(BaseModel):
    """
    Schema for the GET /health response body.
    """
    status: str = Field("ok", description="Status of the API service.")
    timestamp: datetime = Field(..., description="Current server time.")
    version: str = Field(..., description="Application version.")
    vector_store: str = Field(..., description="Active vector store backend.")
