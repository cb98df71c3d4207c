"""Custom exceptions for the indexing service."""


class WebIndexError(Exception):
    """Base exception for all indexing errors."""
    status_code = 500


# Input and policy errors
class InputError(WebIndexError):
    """Raised when a required request field is missing or malformed."""
    status_code = 400


class RobotsDisallowedError(WebIndexError):
    """Raised when robots.txt forbids access to the requested URL."""
    status_code = 403

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"URL is disallowed by robots.txt: {url}")


# Not-found errors
class SitemapNotFoundError(WebIndexError):
    """Raised when no page URLs could be resolved from a site's sitemap."""
    status_code = 404


class DomainNotFoundError(WebIndexError):
    """Raised when a domain has no stored records."""
    status_code = 404

    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(f"No vectors found for domain: {domain}")


# Upstream errors
class SitemapFetchError(WebIndexError):
    """Raised when the primary sitemap cannot be fetched or parsed."""
    status_code = 500

    def __init__(self, url: str, reason: str = None):
        self.url = url
        message = f"Failed to fetch sitemap: {url}"
        if reason:
            message += f" - {reason}"
        super().__init__(message)


class ScrapeError(WebIndexError):
    """Raised when a page yields no content."""
    status_code = 502


class EmbeddingError(WebIndexError):
    """Raised when the embedding provider fails."""
    status_code = 502


class StoreUnavailableError(WebIndexError):
    """Raised when the vector store could not answer; safe to retry."""
    status_code = 503


class CrawlCancelledError(WebIndexError):
    """Raised when the client disconnected while a stream was in flight."""
    status_code = 499
