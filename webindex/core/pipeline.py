import asyncio
import logging
from typing import AsyncIterator, List, Optional

from webindex.core import progress
from webindex.core.crawler import BaseScraper
from webindex.core.embedder import BaseEmbedder
from webindex.core.processor import DocumentProcessor
from webindex.core.progress import ProgressEvent, event
from webindex.models.document import utcnow
from webindex.models.schemas import CrawlUrlError, CrawlUrlResult
from webindex.services.vector_store import VectorStore, domain_from_url
from webindex.utils.cancellation import CancellationToken
from webindex.utils.exceptions import CrawlCancelledError, ScrapeError
from webindex.utils.logger import get_request_logger


class CrawlPipeline:
    """
    Indexes a batch of URLs for a user and reports progress as a stream of events.

    URLs are handled one after another. For each one, a domain that is already
    indexed only gets the user added to its owners; otherwise the page is
    scraped, chunked, embedded chunk by chunk and written to the vector store.
    A failing URL is reported with a `url_error` event and the batch goes on;
    anything failing outside the per-URL step ends the stream with an `error` event.

    The pipeline holds no state between runs.
    """
    def __init__(
        self,
        scraper: BaseScraper,
        embedder: BaseEmbedder,
        vector_store: VectorStore,
        processor: DocumentProcessor,
        max_urls: int = 10,
        embedding_delay: float = 0.1,
        url_delay: float = 1.0,
        progress_interval: int = 10,
    ):
        self.scraper = scraper
        self.embedder = embedder
        self.vector_store = vector_store
        self.processor = processor
        self.max_urls = max_urls
        self.embedding_delay = embedding_delay
        self.url_delay = url_delay
        self.progress_interval = max(1, progress_interval)

    async def run(
        self,
        urls: List[str],
        user_email: str,
        token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[ProgressEvent]:
        token = token or CancellationToken()
        log = get_request_logger(__name__, user=user_email)

        try:
            yield event(progress.START, "Starting crawl process...", progress=0)

            results: List[CrawlUrlResult] = []
            errors: List[CrawlUrlError] = []
            targets = urls[: self.max_urls]
            if len(urls) > len(targets):
                log.info(f"Crawl limited to the first {len(targets)} of {len(urls)} URLs.")
            total = len(targets)

            for i, url in enumerate(targets):
                try:
                    yield event(
                        progress.PROGRESS,
                        f"Processing {i + 1}/{total}: {url}",
                        progress=round(i / total * 100),
                        currentUrl=url,
                    )
                    async for url_event in self._index_url(url, user_email, token, results):
                        yield url_event
                except CrawlCancelledError:
                    raise
                except Exception as e:
                    message = str(e) or type(e).__name__
                    log.error(f"Error processing {url}: {message}", exc_info=log.isEnabledFor(logging.DEBUG))
                    errors.append(CrawlUrlError(url=url, error=message))
                    yield event(progress.URL_ERROR, f"Error processing {url}: {message}", url=url, error=message)

            log.info(f"Crawl completed. Processed: {len(results)}, Failed: {len(errors)}")
            yield event(
                progress.COMPLETE,
                f"Crawl completed! Processed: {len(results)}, Failed: {len(errors)}",
                progress=100,
                results=[r.model_dump(by_alias=True, exclude_none=True) for r in results],
                errors=[e.model_dump(by_alias=True) for e in errors],
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            log.error(f"Crawl failed: {message}")
            yield event(progress.ERROR, f"Crawl failed: {message}", error=message)

    async def _index_url(
        self,
        url: str,
        user_email: str,
        token: CancellationToken,
        results: List[CrawlUrlResult],
    ) -> AsyncIterator[ProgressEvent]:
        """Runs one URL through the pipeline, appending its result on success."""
        domain = domain_from_url(url)

        token.raise_if_cancelled()
        if await asyncio.to_thread(self.vector_store.domain_exists, url):
            token.raise_if_cancelled()
            updated = await asyncio.to_thread(self.vector_store.grant_access, user_email, domain)
            results.append(CrawlUrlResult(
                url=url, success=True, chunks=0, vectors=updated,
                was_already_indexed=True, vectors_updated=updated,
            ))
            yield event(
                progress.URL_COMPLETE,
                f"Domain already indexed: {domain}",
                url=url,
                success=True,
                wasAlreadyIndexed=True,
                vectorsUpdated=updated,
            )
            return

        yield event(progress.SCRAPING, f"Scraping content from {url}...", url=url)
        token.raise_if_cancelled()
        page = await self.scraper.scrape(url)
        if not page:
            raise ScrapeError("Scraping failed")
        content = page.content
        if not content:
            raise ScrapeError("No content extracted")

        yield event(progress.CHUNKING, "Creating content chunks...", url=url)
        chunks = self.processor.process_document(url, content)
        if not chunks:
            raise ScrapeError("No content extracted")

        yield event(
            progress.EMBEDDING,
            f"Generating embeddings ({len(chunks)} chunks)...",
            url=url,
            totalChunks=len(chunks),
        )
        for j, chunk in enumerate(chunks):
            token.raise_if_cancelled()
            chunk.embedding = await self.embedder.embed(chunk.text)
            chunk.timestamp = utcnow()

            if j % self.progress_interval == 0:
                yield event(
                    progress.EMBEDDING_PROGRESS,
                    f"Generated {j + 1}/{len(chunks)} embeddings...",
                    url=url,
                    embeddingProgress=round((j + 1) / len(chunks) * 100),
                )
            await token.sleep(self.embedding_delay)

        yield event(progress.INDEXING, "Storing in vector database...", url=url)
        token.raise_if_cancelled()
        await asyncio.to_thread(self.vector_store.upsert, chunks, user_email)

        results.append(CrawlUrlResult(url=url, success=True, chunks=len(chunks), vectors=len(chunks)))
        yield event(
            progress.URL_COMPLETE,
            f"Completed: {url}",
            url=url,
            success=True,
            chunks=len(chunks),
            vectors=len(chunks),
        )
        await token.sleep(self.url_delay)
