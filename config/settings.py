"""Server configuration for rustdoc-mcp.

Settings come from environment variables with defaults suitable for running
the server as a stdio subprocess of an MCP client.
"""

import os
import logging
from typing import Optional
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SERVER_NAME = "rust-doc-mcp"
SERVER_VERSION = "0.1.0"
PROTOCOL_VERSION = "2024-11-05"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class HttpConfig(BaseModel):
    """Outbound HTTP settings used by the documentation fetchers."""
    timeout: float = Field(default=20.0, description="Request timeout in seconds")
    max_retries: int = Field(default=2, description="Retries for transient failures")
    retry_delay: float = Field(default=0.5, description="Base backoff delay in seconds")
    user_agent: str = Field(default=f"{SERVER_NAME}/{SERVER_VERSION}", description="User-Agent header")
    github_token: Optional[str] = Field(default=None, description="GitHub API token")


class ServerConfig(BaseModel):
    """Top level server configuration."""
    name: str = Field(default=SERVER_NAME, description="Server name reported on initialize")
    version: str = Field(default=SERVER_VERSION, description="Server version reported on initialize")
    protocol_version: str = Field(default=PROTOCOL_VERSION, description="MCP protocol version")

    db_path: str = Field(default="data/rust_docs.db", description="SQLite database path")
    seed_on_start: bool = Field(default=True, description="Load built-in patterns and error solutions")

    heartbeat_interval: float = Field(default=30.0, description="Seconds between heartbeats, 0 disables")
    shutdown_grace: float = Field(default=0.1, description="Delay before stopping after shutdown")

    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")
    log_file: Optional[str] = Field(default=None, description="Optional JSON log file")

    http: HttpConfig = Field(default_factory=HttpConfig, description="Outbound HTTP configuration")

    @classmethod
    def from_env(cls) -> 'ServerConfig':
        """Create configuration from environment variables."""
        http_config = HttpConfig(
            timeout=float(os.getenv('RUSTDOC_HTTP_TIMEOUT', '20')),
            max_retries=int(os.getenv('RUSTDOC_HTTP_RETRIES', '2')),
            retry_delay=float(os.getenv('RUSTDOC_HTTP_RETRY_DELAY', '0.5')),
            github_token=os.getenv('GITHUB_TOKEN') or None
        )

        return cls(
            db_path=os.getenv('RUSTDOC_DB_PATH', 'data/rust_docs.db'),
            seed_on_start=_env_bool('RUSTDOC_SEED_ON_START', True),
            heartbeat_interval=float(os.getenv('RUSTDOC_HEARTBEAT_INTERVAL', '30')),
            shutdown_grace=float(os.getenv('RUSTDOC_SHUTDOWN_GRACE', '0.1')),
            log_level=os.getenv('RUSTDOC_LOG_LEVEL', 'INFO'),
            log_json=_env_bool('RUSTDOC_LOG_JSON', False),
            log_file=os.getenv('RUSTDOC_LOG_FILE') or None,
            http=http_config
        )
