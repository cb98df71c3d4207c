import pytest
from typing import List, Optional
from unittest.mock import AsyncMock

from webindex.core.crawler import BaseScraper
from webindex.core.embedder import BaseEmbedder
from webindex.models.document import DocumentChunk, ScrapedPage
from webindex.services.document_store import DocumentVectorStore
from webindex.services.faiss_store import FaissVectorStore

DIM = 4


class FakeEmbedder(BaseEmbedder):
    """Deterministic embedder: a 4-d vector derived from the text length."""
    dimension = DIM

    def __init__(self):
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return [1.0, float(len(text) % 5), 0.5, 0.25]


class FakeScraper(BaseScraper):
    """Returns canned text per URL; unknown URLs yield None."""
    def __init__(self, pages: Optional[dict] = None):
        self.pages = pages or {}
        self.calls: List[str] = []

    async def scrape(self, url: str) -> Optional[ScrapedPage]:
        self.calls.append(url)
        text = self.pages.get(url)
        if text is None:
            return None
        return ScrapedPage(url=url, text=text)


def make_chunk(chunk_id: str, url: str, embedding: List[float], text: str = "chunk text", index: int = 0, total: int = 1) -> DocumentChunk:
    return DocumentChunk(
        chunk_id=chunk_id,
        url=url,
        text=text,
        chunk_index=index,
        total_chunks=total,
        embedding=embedding,
    )


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def document_store(tmp_path):
    return DocumentVectorStore(storage_path=str(tmp_path), collection_name="test_vectors", dimension=DIM)


@pytest.fixture
def faiss_store(tmp_path):
    return FaissVectorStore(storage_path=str(tmp_path), collection_name="test_vectors", dimension=DIM)


@pytest.fixture(params=["document", "faiss"])
def store(request, tmp_path):
    """Each backend in turn; both must honour the same contract."""
    if request.param == "document":
        return DocumentVectorStore(storage_path=str(tmp_path), collection_name="test_vectors", dimension=DIM)
    return FaissVectorStore(storage_path=str(tmp_path), collection_name="test_vectors", dimension=DIM)


@pytest.fixture
def mock_embedder():
    """An embedder whose embed() is an AsyncMock returning a fixed vector."""
    embedder = AsyncMock(spec=BaseEmbedder)
    embedder.dimension = DIM
    embedder.embed.return_value = [1.0, 0.0, 0.0, 0.0]
    return embedder
