"""Errors raised by documentation collaborators."""

from typing import Optional


class ToolError(Exception):
    """A tool body failed; reported to the peer as an ``isError`` payload."""


class FetchError(ToolError):
    """An outbound HTTP request failed."""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url
        self.status = status


class NotFoundError(FetchError):
    """The remote resource does not exist (HTTP 404)."""

    def __init__(self, url: str):
        super().__init__(url, "not found", status=404)
