"""Indexer package for rustdoc-mcp.

Provides the SQLite document store and its full-text search index.
"""

from .errors import StoreError, NotInitializedError, StorageError
from .models import Document, Pattern, ErrorSolution
from .sqlite_store import DocumentStore, build_match_query

__all__ = [
    'StoreError',
    'NotInitializedError',
    'StorageError',
    'Document',
    'Pattern',
    'ErrorSolution',
    'DocumentStore',
    'build_match_query'
]
