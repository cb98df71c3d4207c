"""
Utility functions
"""
from .logger import setup_logging, get_request_logger
from .text_utils import clean_html, chunk_text, split_sentences

__all__ = [
    "setup_logging",
    "get_request_logger",
    "clean_html",
    "chunk_text",
    "split_sentences",
]
