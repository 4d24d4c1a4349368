"""Observability package for rustdoc-mcp."""

from .logging import setup_logging, get_logger, JSONFormatter, ColoredFormatter

__all__ = [
    'setup_logging',
    'get_logger',
    'JSONFormatter',
    'ColoredFormatter'
]
