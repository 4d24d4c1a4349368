"""Server package for rustdoc-mcp.

Provides the JSON-RPC protocol engine and the documentation tool server.
"""

from .protocol import ErrorCode, McpError, JSONRPCRequest, JSONRPCServer
from .tools import ToolName, ToolResult, ToolSpec, build_catalog
from .mcp_server import RustDocServer, main, run

__all__ = [
    'ErrorCode',
    'McpError',
    'JSONRPCRequest',
    'JSONRPCServer',
    'ToolName',
    'ToolResult',
    'ToolSpec',
    'build_catalog',
    'RustDocServer',
    'main',
    'run'
]
