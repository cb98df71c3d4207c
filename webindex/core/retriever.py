import asyncio
import logging
from typing import List, Optional

from webindex.core.embedder import BaseEmbedder
from webindex.models.document import VectorMatch
from webindex.services.vector_store import VectorStore

logger = logging.getLogger(__name__)

class Retriever:
    """
    Retrieves the stored chunks most similar to a query, among those the user may read.
    """
    def __init__(self, embedder: BaseEmbedder, vector_store: VectorStore, default_top_k: int = 5):
        self.embedder = embedder
        self.vector_store = vector_store
        self.default_top_k = default_top_k

    async def search(
        self,
        query: str,
        user_email: str,
        top_k: Optional[int] = None,
        domain_filter: Optional[str] = None,
    ) -> List[VectorMatch]:
        """
        Embeds the query and asks the vector store for the top_k closest chunks.

        Returns:
            VectorMatch list sorted by descending cosine similarity.
        """
        k = top_k or self.default_top_k
        logger.info(f"Searching for: '{query}' (topK: {k}, domain: {domain_filter})")

        query_embedding = await self.embedder.embed(query)
        results = await asyncio.to_thread(self.vector_store.query, query_embedding, user_email, k, domain_filter)

        logger.info(f"Found {len(results)} results for query: '{query}'")
        return results
