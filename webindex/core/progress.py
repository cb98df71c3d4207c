"""
Progress events streamed to the caller while a crawl or domain check runs.

Each event is a flat JSON object with a `type` discriminator and a human readable
`message`; the remaining fields depend on the type. The stream is push-only and
always ends with a `complete` or `error` event.
"""
from typing import Any, Dict
from pydantic import BaseModel, ConfigDict

# Crawl stream
START = "start"
PROGRESS = "progress"
SCRAPING = "scraping"
CHUNKING = "chunking"
EMBEDDING = "embedding"
EMBEDDING_PROGRESS = "embedding_progress"
INDEXING = "indexing"
URL_COMPLETE = "url_complete"
URL_ERROR = "url_error"
COMPLETE = "complete"
ERROR = "error"

# Domain-check stream
CHECKING_GLOBAL = "checking_global"
DOMAIN_FOUND = "domain_found"
CHECKING_USER_ACCESS = "checking_user_access"
ADDING_USER = "adding_user"
USER_ADDED = "user_added"

TERMINAL_TYPES = frozenset({COMPLETE, ERROR})


class ProgressEvent(BaseModel):
    """A single event on a progress stream. Extra keyword fields are carried as-is."""
    model_config = ConfigDict(extra="allow")

    type: str
    message: str

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_TYPES

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


def event(type: str, message: str, **fields: Any) -> ProgressEvent:
    return ProgressEvent(type=type, message=message, **fields)
