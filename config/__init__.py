"""Configuration module for rustdoc-mcp.

Provides configuration for the server, the document store and outbound HTTP.
"""

from .settings import (
    ServerConfig,
    HttpConfig,
    SERVER_NAME,
    SERVER_VERSION,
    PROTOCOL_VERSION
)

__all__ = [
    'ServerConfig',
    'HttpConfig',
    'SERVER_NAME',
    'SERVER_VERSION',
    'PROTOCOL_VERSION'
]
