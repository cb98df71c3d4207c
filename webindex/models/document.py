from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScrapedPage(BaseModel):
    """
    Content returned by a scraper for a single URL.
    """
    url: str
    text: str = "" # Main extracted text, preferred for chunking
    html: Optional[str] = None # Raw HTML, used when no text could be extracted

    @property
    def content(self) -> str:
        return self.text or self.html or ""


class DocumentChunk(BaseModel):
    """
    A chunk of page text with its embedding, ready to be written to the vector store.
    """
    chunk_id: str # <domain>_<batch millis>_chunk_<index>
    url: str
    text: str
    chunk_index: int
    total_chunks: int
    timestamp: datetime = Field(default_factory=utcnow) # When the chunk was embedded
    embedding: Optional[List[float]] = None


class ChunkRecord(BaseModel):
    """
    The stored unit: one chunk plus the access-control fields.
    `owners` behaves as a set; every chunk of a domain normally shares the same owners.
    """
    id: str
    url: str
    domain: str
    text: str
    chunk_index: int
    total_chunks: int
    timestamp: datetime
    embedding: List[float] = [] # Empty when the backend keeps vectors in its own index
    owners: List[str]
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: Optional[datetime] = None

    def match_metadata(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "text": self.text,
            "chunk_index": self.chunk_index,
            "domain": self.domain,
            "timestamp": self.timestamp.isoformat(),
        }


class VectorMatch(BaseModel):
    """
    A scored query hit. Higher score means more similar.
    """
    id: str
    score: float
    metadata: Dict[str, Any] = {}
