import logging
from fastapi import APIRouter, Depends, HTTPException, status
from webindex.models.schemas import SearchRequest, SearchResponse, SearchResult
from webindex.core.retriever import Retriever
from webindex.dependencies import get_retriever
from webindex.utils.exceptions import WebIndexError
from webindex.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/search", response_model=SearchResponse, summary="Similarity search over the user's indexed content")
async def search(payload: SearchRequest, retriever: Retriever = Depends(get_retriever)):
    """
    Embeds the query and returns the closest chunks the user has access to,
    highest similarity first.
    """
    try:
        matches = await retriever.search(payload.query, payload.user_email, payload.top_k, payload.domain_filter)
    except WebIndexError as e:
        logger.error(f"Error in search for '{payload.query}': {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error in search for '{payload.query}': {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {e}" if settings.DEBUG else "Internal server error"
        )

    return SearchResponse(
        success=True,
        query=payload.query,
        results=[
            SearchResult(
                score=match.score,
                url=match.metadata.get("url", ""),
                text=match.metadata.get("text", ""),
                chunk_index=match.metadata.get("chunk_index", 0),
                domain=match.metadata.get("domain", ""),
                timestamp=match.metadata.get("timestamp"),
            )
            for match in matches
        ],
    )
