import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Set
from urllib.parse import urlparse

import numpy as np

from webindex.models.document import DocumentChunk, VectorMatch
from webindex.utils.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def domain_from_url(url: str) -> str:
    """The grouping key of a URL: its lower-cased hostname, port dropped."""
    hostname = urlparse(url).hostname
    if not hostname:
        raise ValueError(f"Cannot derive a domain from URL: {url}")
    return hostname.lower()


def cosine_similarities(query: List[float], matrix: np.ndarray) -> np.ndarray:
    """
    Cosine similarity between a query vector and every row of matrix.
    Rows (or a query) with zero norm score 0.
    """
    query_np = np.asarray(query, dtype="float32")
    if matrix.size == 0:
        return np.zeros(0, dtype="float32")
    if query_np.shape[0] != matrix.shape[1]:
        raise ValueError(
            f"Query embedding dimension mismatch. Expected: {matrix.shape[1]}, Got: {query_np.shape[0]}"
        )
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_np)
    dots = matrix @ query_np
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return scores.astype("float32")


class VectorStore(ABC):
    """
    Multi-tenant chunk store. Records are grouped by domain and readable only by their owners.

    Implementations are selected at startup by configuration (see create_vector_store);
    callers never branch on the backend in use. The methods are synchronous; async
    callers run them through asyncio.to_thread.
    """
    def __init__(self, dimension: int, strict_domain_check: bool = False):
        self.dimension = dimension
        self.strict_domain_check = strict_domain_check

    def domain_exists(self, url: str) -> bool:
        """
        True iff any stored record belongs to the hostname of url.

        A failing check degrades to False, so the caller re-indexes instead of
        failing. With strict_domain_check the failure is raised as
        StoreUnavailableError so "absent" and "unknown" stay distinguishable.
        """
        try:
            return self._domain_exists(domain_from_url(url))
        except Exception as e:
            if self.strict_domain_check:
                raise StoreUnavailableError(f"Domain existence check failed for {url}: {e}") from e
            logger.warning(f"Domain existence check failed for {url}, assuming not indexed: {e}")
            return False

    @abstractmethod
    def _domain_exists(self, domain: str) -> bool:
        pass

    @abstractmethod
    def grant_access(self, user: str, domain: str) -> int:
        """
        Adds user to the owners of every record of domain that lacks it and stamps
        last_updated. Returns how many records changed; raises DomainNotFoundError
        when the domain has no records.
        """

    @abstractmethod
    def upsert(self, chunks: List[DocumentChunk], user: str) -> int:
        """Creates (or replaces, by id) one record per chunk, owned by user."""

    @abstractmethod
    def query(
        self,
        embedding: List[float],
        user: str,
        top_k: int = 5,
        domain_filter: Optional[str] = None,
    ) -> List[VectorMatch]:
        """Top-k records readable by user (optionally within one domain), most similar first."""

    @abstractmethod
    def list_user_domains(self, user: str) -> Set[str]:
        pass

    def _validate_chunks(self, chunks: List[DocumentChunk]) -> None:
        for chunk in chunks:
            if not chunk.embedding or len(chunk.embedding) != self.dimension:
                got = len(chunk.embedding) if chunk.embedding else 0
                raise ValueError(
                    f"Embedding dimension mismatch for chunk {chunk.chunk_id}. Expected: {self.dimension}, Got: {got}"
                )

    @staticmethod
    def _normalize_filter(domain_filter: Optional[str]) -> Optional[str]:
        if domain_filter is None or not domain_filter.strip():
            return None
        return domain_filter.strip().lower()


def create_vector_store(settings) -> VectorStore:
    """Builds the backend named by VECTOR_STORE_BACKEND."""
    backend = settings.VECTOR_STORE_BACKEND.lower()
    if backend == "document":
        from webindex.services.document_store import DocumentVectorStore
        store = DocumentVectorStore(
            storage_path=settings.VECTOR_STORE_PATH,
            collection_name=settings.VECTOR_COLLECTION_NAME,
            dimension=settings.EMBEDDING_DIMENSION,
            strict_domain_check=settings.STRICT_DOMAIN_CHECK,
        )
    elif backend == "faiss":
        from webindex.services.faiss_store import FaissVectorStore
        store = FaissVectorStore(
            storage_path=settings.VECTOR_STORE_PATH,
            collection_name=settings.VECTOR_COLLECTION_NAME,
            dimension=settings.EMBEDDING_DIMENSION,
            strict_domain_check=settings.STRICT_DOMAIN_CHECK,
        )
        logger.info("FAISS backend active: search results come from the vector index.")
    else:
        raise ValueError(f"Unsupported VECTOR_STORE_BACKEND: {settings.VECTOR_STORE_BACKEND}")
    logger.info(f"Vector store initialized: {backend}")
    return store
