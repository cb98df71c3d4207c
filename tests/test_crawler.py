import pytest
import httpx
from unittest.mock import AsyncMock, patch
from readability import Document as ReadabilityDocument

from webindex.core.crawler import WebScraper

ARTICLE_HTML = """
<html>
    <head><title>Install Guide</title></head>
    <body>
        <script>var tracking = true;</script>
        <article>
            <p>This guide walks through installing the command line tool on every platform.</p>
            <p>Download the archive, unpack it and add the binary to your PATH.</p>
        </article>
    </body>
</html>
"""


def make_scraper(handler, max_retries=2):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebScraper(client=client, max_retries=max_retries)


@pytest.fixture
def no_backoff():
    """Skips the exponential backoff between retries."""
    with patch("webindex.core.crawler.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.mark.asyncio
async def test_fetch_url_success(no_backoff):
    """Test successful URL fetching."""
    calls = []

    def handler(request):
        calls.append(str(request.url))
        return httpx.Response(200, text="<html>Test</html>")

    scraper = make_scraper(handler)
    content = await scraper._fetch_url("http://example.com/page1")

    assert content == "<html>Test</html>"
    assert calls == ["http://example.com/page1"]
    no_backoff.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_url_server_error_retries(no_backoff):
    """Test URL fetching with server errors and retries."""
    calls = []

    def handler(request):
        calls.append(str(request.url))
        return httpx.Response(503, text="unavailable")

    scraper = make_scraper(handler, max_retries=2)
    content = await scraper._fetch_url("http://example.com/page1")

    assert content is None
    # initial attempt + retries
    assert len(calls) == 3
    assert no_backoff.await_count == 2


@pytest.mark.asyncio
async def test_fetch_url_recovers_after_transient_error(no_backoff):
    responses = iter([httpx.Response(500), httpx.Response(200, text="<html>ok</html>")])

    scraper = make_scraper(lambda request: next(responses))
    content = await scraper._fetch_url("http://example.com/page1")

    assert content == "<html>ok</html>"


@pytest.mark.asyncio
async def test_fetch_url_client_error_is_not_retried(no_backoff):
    calls = []

    def handler(request):
        calls.append(str(request.url))
        return httpx.Response(404, text="not found")

    scraper = make_scraper(handler, max_retries=3)
    content = await scraper._fetch_url("http://example.com/missing")

    assert content is None
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_fetch_url_request_error(no_backoff):
    """Test URL fetching with connection errors and retries."""
    calls = []

    def handler(request):
        calls.append(str(request.url))
        raise httpx.ConnectError("Connection refused", request=request)

    scraper = make_scraper(handler, max_retries=1)
    content = await scraper._fetch_url("http://example.com/page1")

    assert content is None
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_scrape_extracts_text(no_backoff):
    scraper = make_scraper(lambda request: httpx.Response(200, text=ARTICLE_HTML))
    with patch("webindex.utils.text_utils.ReadabilityDocument", wraps=ReadabilityDocument) as readability:
        page = await scraper.scrape("http://example.com/install")

    # The page is parsed once
    assert readability.call_count == 1
    assert page is not None
    assert page.url == "http://example.com/install"
    assert "installing the command line tool" in page.text
    assert "tracking" not in page.text
    assert page.content == page.text
    assert page.html == ARTICLE_HTML


@pytest.mark.asyncio
async def test_scrape_returns_none_when_fetch_fails(no_backoff):
    scraper = make_scraper(lambda request: httpx.Response(404), max_retries=0)
    assert await scraper.scrape("http://example.com/missing") is None
