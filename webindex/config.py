from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    # App
    APP_NAME: str = "WebIndex API"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"
    DEBUG: bool = False # Forces DEBUG logging and extra detail in error responses

    # Logging
    LOG_PATH: str = "logs/"

    # Chunking
    CHUNK_SIZE: int = 500 # Max characters per chunk
    MAX_CHUNKS_PER_DOC: int = 30

    # Crawling
    MAX_URLS_TO_CRAWL: int = 5 # Cap applied to URLs returned from a sitemap
    CRAWL_BATCH_LIMIT: int = 10 # Max URLs processed by a single crawl request
    EMBEDDING_DELAY_SECONDS: float = 0.1 # Pause between embedding calls
    URL_DELAY_SECONDS: float = 1.0 # Pause after each successfully indexed URL
    EMBEDDING_PROGRESS_INTERVAL: int = 10 # Chunks between embedding_progress events

    # HTTP fetching (scraper and sitemap resolver)
    CRAWLER_USER_AGENT: str = "Mozilla/5.0 (compatible; WebIndexBot/0.1)"
    CRAWLER_REQUEST_TIMEOUT: int = 10
    CRAWLER_MAX_RETRIES: int = 3

    # Embedding Providers
    EMBEDDING_PROVIDER: str = "openai"
    EMBEDDING_DIMENSION: int = 1536

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-ada-002"

    # Local SentenceTransformer
    LOCAL_EMBEDDING_MODEL: str = "all-MiniLM-L6-v2"

    # Vector Store
    VECTOR_STORE_BACKEND: str = "document" # "document" (exact cosine) or "faiss" (vector index)
    VECTOR_STORE_PATH: str = "./.vector_store"
    VECTOR_COLLECTION_NAME: str = "documentation_vectors"
    STRICT_DOMAIN_CHECK: bool = False

    # Retriever
    RETRIEVER_TOP_K: int = 5 # Default number of search results

    class Config:
        case_sensitive = True

# Instantiate settings
settings = Settings()
