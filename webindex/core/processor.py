import time
import logging
from typing import List, Optional

from webindex.models.document import DocumentChunk
from webindex.services.vector_store import domain_from_url
from webindex.utils.text_utils import chunk_text

logger = logging.getLogger(__name__)


class DocumentProcessor:
    """
    Splits page content into sentence-aligned chunks and assigns each a stable id.
    """
    def __init__(self, chunk_size: int = 500, max_chunks: int = 30):
        self.chunk_size = chunk_size
        self.max_chunks = max_chunks

    def chunk(self, content: str) -> List[str]:
        return chunk_text(content, self.chunk_size, self.max_chunks)

    def process_document(self, url: str, content: str, batch_id: Optional[int] = None) -> List[DocumentChunk]:
        """
        Chunks content and wraps each piece in a DocumentChunk (without embedding).
        Ids are unique per (domain, batch, chunk index); batch defaults to the current time in ms.
        """
        domain = domain_from_url(url)
        batch_id = batch_id if batch_id is not None else int(time.time() * 1000)
        texts = self.chunk(content)

        chunks = [
            DocumentChunk(
                chunk_id=f"{domain}_{batch_id}_chunk_{i}",
                url=url,
                text=text,
                chunk_index=i,
                total_chunks=len(texts),
            )
            for i, text in enumerate(texts)
        ]
        logger.info(f"Processed {url}: generated {len(chunks)} chunks.")
        return chunks
