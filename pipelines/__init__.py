"""Pipelines package for rustdoc-mcp.

Provides the collaborators that harvest documentation into the store:
HTTP fetching, rustdoc and awesome-list parsing, GitHub and crates.io
clients, and Rust book search.
"""

from .errors import ToolError, FetchError, NotFoundError
from .http import HttpFetcher
from .docsrs_parser import DocsRsParser
from .awesome_parser import AwesomeLeptosParser
from .github import GitHubClient, extract_error_from_issue, extract_integration_patterns
from .crates import CratesClient, ManifestError, find_used_crates, load_manifest
from .rust_manual import RustManual, search_html
from .doc_fetcher import DocFetcher, FetchSummary

__all__ = [
    # Errors
    'ToolError',
    'FetchError',
    'NotFoundError',

    # HTTP
    'HttpFetcher',

    # Parsers
    'DocsRsParser',
    'AwesomeLeptosParser',

    # GitHub
    'GitHubClient',
    'extract_error_from_issue',
    'extract_integration_patterns',

    # crates.io
    'CratesClient',
    'ManifestError',
    'find_used_crates',
    'load_manifest',

    # Rust book
    'RustManual',
    'search_html',

    # Orchestration
    'DocFetcher',
    'FetchSummary'
]
