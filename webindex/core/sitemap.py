import re
import logging
from typing import List, Optional, Tuple
from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel

from webindex.utils.exceptions import (
    InputError,
    RobotsDisallowedError,
    SitemapFetchError,
    SitemapNotFoundError,
)

logger = logging.getLogger(__name__)

SITEMAP_DIRECTIVE = re.compile(r"Sitemap:\s*(.+)", re.IGNORECASE)
ENGLISH_MARKERS = ("-en", "_en", "/en/", "english", "sitemap-en.xml", "sitemap_en.xml")
MAX_INDEX_CANDIDATES = 3 # Child sitemaps tried when none looks English
ROBOTS_USER_AGENT = "*"


def is_english_sitemap(sitemap_url: str) -> bool:
    lowered = sitemap_url.lower()
    return any(marker in lowered for marker in ENGLISH_MARKERS)


class SitemapResult(BaseModel):
    sitemap_url: str # The sitemap the URLs were read from
    urls: List[str] # At most max_urls entries, in sitemap order
    total_urls: int # Count before truncation
    is_english_sitemap: bool


class SitemapResolver:
    """
    Finds a site's sitemap through robots.txt and resolves it to a list of page URLs.

    robots.txt problems are not fatal (the default /sitemap.xml is used), but a
    robots rule disallowing the requested URL stops resolution before any sitemap
    is fetched. A sitemap index is narrowed to one child sitemap, preferring an
    English one.
    """
    def __init__(self, client: httpx.AsyncClient, max_urls: int):
        self.client = client
        self.max_urls = max_urls

    async def resolve(self, site_url: str) -> SitemapResult:
        parsed = urlparse(site_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InputError(f"Invalid URL: {site_url}")
        base_url = f"{parsed.scheme}://{parsed.netloc}"

        sitemap_url = await self._discover_sitemap(site_url, base_url)

        logger.debug(f"Fetching sitemap from {sitemap_url}")
        urls, child_sitemaps = await self._read_sitemap(sitemap_url)
        chosen = sitemap_url
        if urls:
            logger.debug(f"Found {len(urls)} URLs in sitemap {sitemap_url}")
        elif child_sitemaps:
            logger.debug(f"Found {len(child_sitemaps)} sitemap references in sitemap index {sitemap_url}")
            chosen, urls = await self._resolve_index(child_sitemaps)

        if not urls:
            raise SitemapNotFoundError(f"No URLs found in sitemap for {site_url}")

        limited_urls = urls[: self.max_urls]
        logger.info(f"Returning {len(limited_urls)} URLs from sitemap {chosen} (total: {len(urls)})")
        return SitemapResult(
            sitemap_url=chosen,
            urls=limited_urls,
            total_urls=len(urls),
            is_english_sitemap=is_english_sitemap(chosen),
        )

    async def _discover_sitemap(self, site_url: str, base_url: str) -> str:
        """Returns the sitemap named in robots.txt (or the default), enforcing robots rules for site_url."""
        robots_url = f"{base_url}/robots.txt"
        default_sitemap = f"{base_url}/sitemap.xml"
        try:
            logger.debug(f"Fetching robots.txt from {robots_url}")
            response = await self.client.get(robots_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Error fetching robots.txt, continuing with default sitemap location: {e}")
            return default_sitemap

        robots_txt = response.text
        parser = RobotFileParser()
        parser.set_url(robots_url)
        parser.parse(robots_txt.splitlines())
        if not parser.can_fetch(ROBOTS_USER_AGENT, site_url):
            logger.warning(f"URL {site_url} is disallowed by robots.txt")
            raise RobotsDisallowedError(site_url)

        match = SITEMAP_DIRECTIVE.search(robots_txt)
        if match:
            sitemap_url = match.group(1).strip()
            logger.debug(f"Found sitemap in robots.txt: {sitemap_url}")
            return sitemap_url
        return default_sitemap

    async def _read_sitemap(self, sitemap_url: str) -> Tuple[List[str], List[str]]:
        """Fetches a sitemap document and returns (page URLs, child sitemap URLs)."""
        try:
            response = await self.client.get(sitemap_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SitemapFetchError(sitemap_url, str(e)) from e

        try:
            soup = BeautifulSoup(response.text, "xml")
        except Exception as e:
            raise SitemapFetchError(sitemap_url, f"unparseable XML: {e}") from e

        return self._locs(soup, "url"), self._locs(soup, "sitemap")

    @staticmethod
    def _locs(soup: BeautifulSoup, parent: str) -> List[str]:
        locs = []
        for entry in soup.find_all(parent):
            loc = entry.find("loc")
            text = loc.get_text(strip=True) if loc else ""
            if text:
                locs.append(text)
        return locs

    async def _resolve_index(self, child_sitemaps: List[str]) -> Tuple[str, List[str]]:
        """Picks the child sitemap to use: the first English one, else the first of the leading few with URLs."""
        english: Optional[str] = next((s for s in child_sitemaps if is_english_sitemap(s)), None)
        candidates = [english] if english else child_sitemaps[:MAX_INDEX_CANDIDATES]

        for candidate in candidates:
            try:
                urls, _ = await self._read_sitemap(candidate)
            except SitemapFetchError as e:
                logger.warning(f"Skipping child sitemap {candidate}: {e}")
                continue
            if urls:
                logger.debug(f"Using child sitemap {candidate} with {len(urls)} URLs")
                return candidate, urls
        return candidates[0], []
