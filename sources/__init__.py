"""Sources package for rustdoc-mcp.

Provides documentation source configuration loading.
"""

from .loader import (
    RepoRef,
    SourceConfig,
    SourceLoader,
    load_source_config,
    get_enabled_sources
)

__all__ = [
    'RepoRef',
    'SourceConfig',
    'SourceLoader',
    'load_source_config',
    'get_enabled_sources'
]
