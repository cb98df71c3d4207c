import os
import json
import logging
from threading import RLock
from typing import Dict, List, Optional, Set

import faiss
import numpy as np

from webindex.models.document import ChunkRecord, DocumentChunk, VectorMatch, utcnow
from webindex.services.vector_store import VectorStore, domain_from_url
from webindex.utils.exceptions import DomainNotFoundError

logger = logging.getLogger(__name__)

GRANT_BATCH_SIZE = 100
PROBE_VALUE = 0.1


class FaissVectorStore(VectorStore):
    """
    Keeps embeddings in a FAISS inner-product index over unit vectors, so index
    scores are cosine similarities. Owner and domain filters are resolved to a
    set of index ids through secondary indexes and pushed into the search as an
    ID selector. Existence checks and domain listing use a constant probe vector.

    Owner grants are saved batch by batch; a failure part way leaves the earlier
    batches applied.
    """
    def __init__(self, storage_path: str, collection_name: str, dimension: int, strict_domain_check: bool = False):
        super().__init__(dimension, strict_domain_check)
        self._storage_path = storage_path
        self._collection_name = collection_name
        self._lock = RLock()
        self._index = faiss.IndexIDMap(faiss.IndexFlatIP(dimension))
        self._records: Dict[int, ChunkRecord] = {} # {faiss id: record}
        self._id_map: Dict[str, int] = {} # {record id: faiss id}
        self._domain_ids: Dict[str, Set[int]] = {}
        self._owner_ids: Dict[str, Set[int]] = {}
        self._next_id = 0
        os.makedirs(self._storage_path, exist_ok=True)
        self._load_from_disk()

    def _get_index_file_path(self) -> str:
        return os.path.join(self._storage_path, f"{self._collection_name}.faiss")

    def _get_metadata_file_path(self) -> str:
        return os.path.join(self._storage_path, f"{self._collection_name}.metadata.json")

    def _load_from_disk(self):
        index_path = self._get_index_file_path()
        metadata_path = self._get_metadata_file_path()
        with self._lock:
            if not (os.path.exists(index_path) and os.path.exists(metadata_path)):
                logger.info(f"No FAISS index for collection {self._collection_name}. Starting empty.")
                return
            index = faiss.read_index(index_path)
            if index.d != self.dimension:
                raise ValueError(
                    f"Stored index dimension {index.d} does not match configured dimension {self.dimension}."
                )
            self._index = index
            with open(metadata_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            for faiss_id, record_data in data.items():
                self._track(int(faiss_id), ChunkRecord(**record_data))
            self._next_id = max(self._records, default=-1) + 1
            logger.info(f"Loaded FAISS index with {self._index.ntotal} vectors for {self._collection_name}.")

    def _save(self, pending: Optional[Dict[int, ChunkRecord]] = None):
        """Writes the index and metadata; pending records are written in place of the in-memory ones."""
        records = {**self._records, **pending} if pending else self._records
        metadata_path = self._get_metadata_file_path()
        tmp_path = f"{metadata_path}.tmp"
        with self._lock:
            faiss.write_index(self._index, self._get_index_file_path())
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(
                    # Vectors live in the index file
                    {str(faiss_id): record.model_dump(mode='json', exclude={'embedding'})
                     for faiss_id, record in records.items()},
                    f,
                    ensure_ascii=False,
                )
            os.replace(tmp_path, metadata_path)

    def _track(self, faiss_id: int, record: ChunkRecord):
        self._records[faiss_id] = record
        self._id_map[record.id] = faiss_id
        self._domain_ids.setdefault(record.domain, set()).add(faiss_id)
        for owner in record.owners:
            self._owner_ids.setdefault(owner, set()).add(faiss_id)

    def _untrack(self, faiss_id: int):
        record = self._records.pop(faiss_id)
        self._id_map.pop(record.id, None)
        self._domain_ids.get(record.domain, set()).discard(faiss_id)
        for owner in record.owners:
            self._owner_ids.get(owner, set()).discard(faiss_id)

    def _select(self, domain: Optional[str] = None, owner: Optional[str] = None) -> Set[int]:
        """Resolves a metadata predicate to the matching index ids."""
        selected: Optional[Set[int]] = None
        if domain is not None:
            selected = set(self._domain_ids.get(domain, set()))
        if owner is not None:
            owner_ids = self._owner_ids.get(owner, set())
            selected = set(owner_ids) if selected is None else selected & owner_ids
        return set(self._records) if selected is None else selected

    def _normalize(self, vectors: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        return np.divide(vectors, norms, out=np.zeros_like(vectors), where=norms > 0)

    def _search(self, embedding: List[float], k: int, ids: Set[int]) -> List[tuple]:
        """Nearest neighbours of embedding restricted to ids, as (faiss id, score) pairs."""
        if not ids or k <= 0:
            return []
        query_np = np.array([embedding], dtype='float32')
        if query_np.shape[1] != self.dimension:
            raise ValueError(
                f"Query embedding dimension mismatch. Expected: {self.dimension}, Got: {query_np.shape[1]}"
            )
        params = faiss.SearchParameters(sel=faiss.IDSelectorBatch(np.array(sorted(ids), dtype='int64')))
        scores, labels = self._index.search(self._normalize(query_np), min(k, len(ids)), params=params)
        return [(int(label), float(score)) for score, label in zip(scores[0], labels[0]) if label != -1]

    def _probe(self) -> List[float]:
        return [PROBE_VALUE] * self.dimension

    def _domain_exists(self, domain: str) -> bool:
        with self._lock:
            return len(self._search(self._probe(), 1, self._select(domain=domain))) > 0

    def grant_access(self, user: str, domain: str) -> int:
        domain = domain.lower()
        with self._lock:
            domain_ids = sorted(self._select(domain=domain))
            if not domain_ids:
                raise DomainNotFoundError(domain)

            updated_count = 0
            for i in range(0, len(domain_ids), GRANT_BATCH_SIZE):
                now = utcnow()
                batch = {
                    faiss_id: self._records[faiss_id].model_copy(
                        update={"owners": self._records[faiss_id].owners + [user], "last_updated": now}
                    )
                    for faiss_id in domain_ids[i : i + GRANT_BATCH_SIZE]
                    if user not in self._records[faiss_id].owners
                }
                if not batch:
                    continue
                self._save(batch)
                # Memory follows disk only once the batch is persisted
                self._records.update(batch)
                self._owner_ids.setdefault(user, set()).update(batch)
                updated_count += len(batch)
            logger.debug(f"Added user {user} to domain {domain}, updated {updated_count} vectors.")
            return updated_count

    def upsert(self, chunks: List[DocumentChunk], user: str) -> int:
        if not chunks:
            return 0
        self._validate_chunks(chunks)

        now = utcnow()
        with self._lock:
            replaced = [self._id_map[c.chunk_id] for c in chunks if c.chunk_id in self._id_map]
            if replaced:
                self._index.remove_ids(np.array(replaced, dtype='int64'))
                for faiss_id in replaced:
                    self._untrack(faiss_id)

            ids = np.arange(self._next_id, self._next_id + len(chunks), dtype='int64')
            self._next_id += len(chunks)
            vectors = self._normalize(np.array([c.embedding for c in chunks], dtype='float32'))
            self._index.add_with_ids(vectors, ids)

            for faiss_id, chunk in zip(ids, chunks):
                self._track(int(faiss_id), ChunkRecord(
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
                ))
            self._save()
            logger.debug(f"Upserted {len(chunks)} vectors. Total indexed: {self._index.ntotal}")
        return len(chunks)

    def query(
        self,
        embedding: List[float],
        user: str,
        top_k: int = 5,
        domain_filter: Optional[str] = None,
    ) -> List[VectorMatch]:
        with self._lock:
            hits = self._search(embedding, top_k, self._select(domain=self._normalize_filter(domain_filter), owner=user))
            results = [
                VectorMatch(id=self._records[faiss_id].id, score=score, metadata=self._records[faiss_id].match_metadata())
                for faiss_id, score in hits
            ]
        results.sort(key=lambda match: match.score, reverse=True)
        logger.debug(f"Found {len(results)} matches for user {user}.")
        return results

    def list_user_domains(self, user: str) -> Set[str]:
        with self._lock:
            ids = self._select(owner=user)
            hits = self._search(self._probe(), len(ids), ids)
            return {self._records[faiss_id].domain for faiss_id, _ in hits}
