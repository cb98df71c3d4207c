import httpx
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from webindex.models.document import ScrapedPage
from webindex.utils.text_utils import clean_html

logger = logging.getLogger(__name__)


class BaseScraper(ABC):
    """
    Capability interface for turning a URL into page content.
    """
    @abstractmethod
    async def scrape(self, url: str) -> Optional[ScrapedPage]:
        """Returns the page content, or None when nothing could be fetched."""


class WebScraper(BaseScraper):
    """
    Fetches a page over HTTP with retries and extracts its main text.
    """
    def __init__(self, client: httpx.AsyncClient, max_retries: int):
        self.client = client
        self.max_retries = max_retries

    async def _fetch_url(self, url: str) -> Optional[str]:
        """Fetches the content of a single URL with retries."""
        for attempt in range(self.max_retries + 1): # +1 for initial attempt
            try:
                response = await self.client.get(url)
                response.raise_for_status()
                logger.info(f"Successfully fetched {url} (Attempt {attempt + 1})")
                return response.text
            except httpx.HTTPStatusError as e:
                logger.warning(f"HTTP error fetching {url}: {e} (Attempt {attempt + 1})")
                if e.response.status_code < 500 and e.response.status_code != 429:
                    break # Client errors will not go away on retry
            except httpx.RequestError as e:
                logger.warning(f"Request error fetching {url}: {e} (Attempt {attempt + 1})")
            if attempt < self.max_retries:
                await asyncio.sleep(2 ** attempt)  # Exponential backoff
        logger.error(f"Failed to fetch {url} after {attempt + 1} attempts.")
        return None

    async def scrape(self, url: str) -> Optional[ScrapedPage]:
        html_content = await self._fetch_url(url)
        if not html_content:
            return None

        text = clean_html(html_content)
        if not text:
            logger.warning(f"No meaningful text extracted from {url}. Falling back to raw HTML.")

        page = ScrapedPage(url=url, text=text, html=html_content)
        logger.debug(f"Scraped {url}: {len(text)} characters of text, {len(html_content)} of HTML.")
        return page
