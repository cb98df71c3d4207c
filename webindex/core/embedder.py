import asyncio
import logging
from typing import List
from abc import ABC, abstractmethod

from webindex.utils.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

# --- Abstract Base Class for Embedders ---

class BaseEmbedder(ABC):
    """
    Capability interface: one text in, one fixed-length vector out.
    """
    dimension: int

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        pass

# --- OpenAI Embedder Implementation ---

class OpenAIEmbedder(BaseEmbedder):
    def __init__(self, api_key: str, model: str, dimension: int, base_url: str = None):
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ImportError("Please install openai: pip install openai")
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai embedding provider.")
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.dimension = dimension
        logger.info(f"Initialized OpenAIEmbedder: {self.model}")

    async def embed(self, text: str) -> List[float]:
        try:
            response = await self.client.embeddings.create(input=text, model=self.model)
        except Exception as e:
            logger.error(f"OpenAI Embedding error: {e}")
            raise EmbeddingError(f"Embedding request failed: {e}") from e
        embedding = response.data[0].embedding
        if len(embedding) != self.dimension:
            raise EmbeddingError(f"Expected a {self.dimension}-dimensional embedding, got {len(embedding)}.")
        return embedding

# --- Local Sentence Transformer Embedder Implementation ---

class LocalSentenceTransformerEmbedder(BaseEmbedder):
    """
    Runs a sentence-transformers model on CPU; encoding happens in a worker thread.
    """
    def __init__(self, model_name: str):
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError:
            raise ImportError("Please install sentence-transformers: pip install sentence-transformers")

        self.model_name = model_name
        self.model = SentenceTransformer(self.model_name, device="cpu")
        self.dimension = self.model.get_sentence_embedding_dimension()
        logger.info(f"Initialized LocalEmbedder: {self.model_name} (Dim: {self.dimension})")

    async def embed(self, text: str) -> List[float]:
        try:
            embedding = await asyncio.to_thread(self.model.encode, text, convert_to_numpy=True)
        except Exception as e:
            logger.error(f"Local Embedding error: {e}")
            raise EmbeddingError(f"Local embedding failed: {e}") from e
        # numpy float32 -> plain floats for JSON and the stores
        return embedding.tolist()

# --- Embedder Factory ---

def create_embedder(settings) -> BaseEmbedder:
    """
    Builds the embedder named by EMBEDDING_PROVIDER.
    """
    provider = settings.EMBEDDING_PROVIDER.lower()
    if provider == "openai":
        embedder = OpenAIEmbedder(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_EMBEDDING_MODEL,
            dimension=settings.EMBEDDING_DIMENSION,
            base_url=settings.OPENAI_BASE_URL,
        )
    elif provider == "local":
        embedder = LocalSentenceTransformerEmbedder(settings.LOCAL_EMBEDDING_MODEL)
        if embedder.dimension != settings.EMBEDDING_DIMENSION:
            raise ValueError(
                f"EMBEDDING_DIMENSION is {settings.EMBEDDING_DIMENSION} but "
                f"{settings.LOCAL_EMBEDDING_MODEL} produces {embedder.dimension}-dimensional vectors."
            )
    else:
        raise ValueError(f"Unsupported EMBEDDING_PROVIDER: {settings.EMBEDDING_PROVIDER}")
    logger.info(f"Active embedder initialized: {provider}")
    return embedder
