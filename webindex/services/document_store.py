import json
import os
import logging
from threading import RLock
from typing import Dict, List, Optional, Set

import numpy as np

from webindex.models.document import ChunkRecord, DocumentChunk, VectorMatch, utcnow
from webindex.services.vector_store import VectorStore, cosine_similarities, domain_from_url
from webindex.utils.exceptions import DomainNotFoundError

logger = logging.getLogger(__name__)


class DocumentVectorStore(VectorStore):
    """
    Stores chunk records as documents in a JSON collection file and scores them
    with exact cosine similarity in memory.

    Every write builds the complete new collection, writes it to a temporary file
    and swaps it into place, so a batch is committed entirely or not at all.
    """
    def __init__(self, storage_path: str, collection_name: str, dimension: int, strict_domain_check: bool = False):
        super().__init__(dimension, strict_domain_check)
        self._storage_path = storage_path
        self._collection_name = collection_name
        self._records: Dict[str, ChunkRecord] = {}
        self._lock = RLock()
        os.makedirs(self._storage_path, exist_ok=True)
        self._load_from_disk()

    def _get_collection_file_path(self) -> str:
        return os.path.join(self._storage_path, f"{self._collection_name}.json")

    def _load_from_disk(self):
        path = self._get_collection_file_path()
        with self._lock:
            if not os.path.exists(path):
                logger.info(f"No collection file at {path}. Starting with an empty collection.")
                return
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._records = {record_id: ChunkRecord(**record) for record_id, record in data.items()}
            logger.info(f"Loaded {len(self._records)} records from {path}.")

    def _commit(self, records: Dict[str, ChunkRecord]):
        """Atomically persists records as the new collection state, then adopts it in memory."""
        path = self._get_collection_file_path()
        tmp_path = f"{path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(
                {record_id: record.model_dump(mode='json') for record_id, record in records.items()},
                f,
                ensure_ascii=False,
            )
        os.replace(tmp_path, path)
        self._records = records

    def _where(self, domain: Optional[str] = None, owner: Optional[str] = None) -> List[ChunkRecord]:
        return [
            record for record in self._records.values()
            if (domain is None or record.domain == domain) and (owner is None or owner in record.owners)
        ]

    def _domain_exists(self, domain: str) -> bool:
        with self._lock:
            return any(record.domain == domain for record in self._records.values())

    def grant_access(self, user: str, domain: str) -> int:
        domain = domain.lower()
        with self._lock:
            domain_records = self._where(domain=domain)
            if not domain_records:
                raise DomainNotFoundError(domain)

            now = utcnow()
            updated = dict(self._records)
            updated_count = 0
            for record in domain_records:
                if user in record.owners:
                    continue
                updated[record.id] = record.model_copy(update={"owners": record.owners + [user], "last_updated": now})
                updated_count += 1

            if updated_count > 0:
                self._commit(updated)
            logger.debug(f"Added user {user} to domain {domain}, updated {updated_count} records.")
            return updated_count

    def upsert(self, chunks: List[DocumentChunk], user: str) -> int:
        if not chunks:
            return 0
        self._validate_chunks(chunks)

        now = utcnow()
        with self._lock:
            updated = dict(self._records)
            for chunk in chunks:
                if chunk.chunk_id in updated:
                    logger.warning(f"Record {chunk.chunk_id} already exists. Overwriting.")
                updated[chunk.chunk_id] = ChunkRecord(
                    id=chunk.chunk_id,
                    url=chunk.url,
                    domain=domain_from_url(chunk.url),
                    text=chunk.text,
                    chunk_index=chunk.chunk_index,
                    total_chunks=chunk.total_chunks,
                    timestamp=chunk.timestamp,
                    embedding=chunk.embedding,
                    owners=[user],
                    created_by=user,
                    created_at=now,
                )
            self._commit(updated)
        logger.debug(f"Upserted {len(chunks)} records for user {user}.")
        return len(chunks)

    def query(
        self,
        embedding: List[float],
        user: str,
        top_k: int = 5,
        domain_filter: Optional[str] = None,
    ) -> List[VectorMatch]:
        with self._lock:
            candidates = self._where(domain=self._normalize_filter(domain_filter), owner=user)
        if not candidates or top_k <= 0:
            return []

        matrix = np.array([record.embedding for record in candidates], dtype='float32')
        scores = cosine_similarities(embedding, matrix)
        order = np.argsort(-scores, kind='stable')[:top_k]

        results = [
            VectorMatch(id=candidates[i].id, score=float(scores[i]), metadata=candidates[i].match_metadata())
            for i in order
        ]
        logger.debug(f"Found {len(results)} matches for user {user} among {len(candidates)} candidates.")
        return results

    def list_user_domains(self, user: str) -> Set[str]:
        with self._lock:
            return {record.domain for record in self._where(owner=user)}
