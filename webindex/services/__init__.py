"""
Vector store backends
"""
from .vector_store import VectorStore, create_vector_store, domain_from_url

__all__ = ["VectorStore", "create_vector_store", "domain_from_url"]
