import pytest
import httpx

from webindex.core.sitemap import SitemapResolver, is_english_sitemap
from webindex.utils.exceptions import (
    InputError,
    RobotsDisallowedError,
    SitemapFetchError,
    SitemapNotFoundError,
)


def urlset(*urls):
    entries = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemap_index(*sitemaps):
    entries = "".join(f"<sitemap><loc>{s}</loc></sitemap>" for s in sitemaps)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


class FakeSite:
    """Serves canned bodies per URL and records every request made."""
    def __init__(self, routes):
        self.routes = routes
        self.requested = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        if url not in self.routes:
            return httpx.Response(404, text="not found")
        status, body = self.routes[url]
        return httpx.Response(status, text=body)


def make_resolver(routes, max_urls=5):
    site = FakeSite(routes)
    client = httpx.AsyncClient(transport=httpx.MockTransport(site.handler))
    return SitemapResolver(client=client, max_urls=max_urls), site


def test_is_english_sitemap():
    assert is_english_sitemap("https://a.com/sitemap-en.xml")
    assert is_english_sitemap("https://a.com/en/sitemap.xml")
    assert not is_english_sitemap("https://a.com/sitemap-fr.xml")


@pytest.mark.asyncio
async def test_resolve_direct_urlset_is_capped():
    pages = [f"https://a.com/p{i}" for i in range(8)]
    resolver, _ = make_resolver({
        "https://a.com/robots.txt": (200, "User-agent: *\nAllow: /\nSitemap: https://a.com/custom.xml\n"),
        "https://a.com/custom.xml": (200, urlset(*pages)),
    })

    result = await resolver.resolve("https://a.com/")

    assert result.sitemap_url == "https://a.com/custom.xml"
    assert result.urls == pages[:5]
    assert result.total_urls == 8
    assert result.is_english_sitemap is False


@pytest.mark.asyncio
async def test_resolve_falls_back_to_default_when_robots_missing():
    resolver, site = make_resolver({
        "https://a.com/sitemap.xml": (200, urlset("https://a.com/one")),
    })

    result = await resolver.resolve("https://a.com/docs")

    assert result.sitemap_url == "https://a.com/sitemap.xml"
    assert result.urls == ["https://a.com/one"]
    assert site.requested[0] == "https://a.com/robots.txt"


@pytest.mark.asyncio
async def test_resolve_index_prefers_english_child():
    resolver, site = make_resolver({
        "https://a.com/robots.txt": (200, "User-agent: *\nAllow: /\n"),
        "https://a.com/sitemap.xml": (200, sitemap_index("https://a.com/sitemap-fr.xml", "https://a.com/sitemap-en.xml")),
        "https://a.com/sitemap-fr.xml": (200, urlset("https://a.com/fr/page")),
        "https://a.com/sitemap-en.xml": (200, urlset("https://a.com/en/page")),
    })

    result = await resolver.resolve("https://a.com/")

    assert result.sitemap_url == "https://a.com/sitemap-en.xml"
    assert result.urls == ["https://a.com/en/page"]
    assert result.is_english_sitemap is True
    assert "https://a.com/sitemap-fr.xml" not in site.requested


@pytest.mark.asyncio
async def test_resolve_index_tries_leading_children_in_order():
    resolver, site = make_resolver({
        "https://a.com/sitemap.xml": (200, sitemap_index(
            "https://a.com/s1.xml", "https://a.com/s2.xml", "https://a.com/s3.xml", "https://a.com/s4.xml",
        )),
        "https://a.com/s1.xml": (500, "boom"),
        "https://a.com/s2.xml": (200, urlset()),
        "https://a.com/s3.xml": (200, urlset("https://a.com/from-s3")),
        "https://a.com/s4.xml": (200, urlset("https://a.com/from-s4")),
    })

    result = await resolver.resolve("https://a.com/")

    assert result.sitemap_url == "https://a.com/s3.xml"
    assert result.urls == ["https://a.com/from-s3"]
    assert "https://a.com/s4.xml" not in site.requested


@pytest.mark.asyncio
async def test_resolve_index_with_no_usable_children():
    resolver, site = make_resolver({
        "https://a.com/sitemap.xml": (200, sitemap_index(
            "https://a.com/s1.xml", "https://a.com/s2.xml", "https://a.com/s3.xml", "https://a.com/s4.xml",
        )),
        "https://a.com/s4.xml": (200, urlset("https://a.com/late")),
    })

    with pytest.raises(SitemapNotFoundError):
        await resolver.resolve("https://a.com/")
    assert "https://a.com/s4.xml" not in site.requested


@pytest.mark.asyncio
async def test_robots_disallow_stops_before_sitemap_fetch():
    resolver, site = make_resolver({
        "https://a.com/robots.txt": (200, "User-agent: *\nDisallow: /private\nSitemap: https://a.com/sitemap.xml\n"),
        "https://a.com/sitemap.xml": (200, urlset("https://a.com/private/x")),
    })

    with pytest.raises(RobotsDisallowedError) as exc_info:
        await resolver.resolve("https://a.com/private/page")

    assert exc_info.value.status_code == 403
    assert site.requested == ["https://a.com/robots.txt"]


@pytest.mark.asyncio
async def test_primary_sitemap_failure_is_a_fetch_error():
    resolver, _ = make_resolver({
        "https://a.com/robots.txt": (200, "User-agent: *\nAllow: /\n"),
        "https://a.com/sitemap.xml": (503, "unavailable"),
    })

    with pytest.raises(SitemapFetchError):
        await resolver.resolve("https://a.com/")


@pytest.mark.asyncio
async def test_empty_sitemap_is_not_found():
    resolver, _ = make_resolver({
        "https://a.com/robots.txt": (200, "User-agent: *\nAllow: /\n"),
        "https://a.com/sitemap.xml": (200, urlset()),
    })

    with pytest.raises(SitemapNotFoundError) as exc_info:
        await resolver.resolve("https://a.com/")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_invalid_url_is_rejected():
    resolver, site = make_resolver({})
    with pytest.raises(InputError):
        await resolver.resolve("not-a-url")
    assert site.requested == []
