"""Tool catalog, tool results and result formatting for the MCP server."""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from indexer.models import Document, ErrorSolution, Pattern
from .protocol import ErrorCode, McpError


class ToolName(str, Enum):
    """Every tool the server exposes through ``call_tool``."""
    SEARCH_OFFLINE_DOCS = "search_offline_docs"
    GET_COMMON_PATTERNS = "get_common_patterns"
    FIND_ERROR_SOLUTION = "find_error_solution"
    FETCH_LEPTOS_DOCS = "fetch_leptos_docs"
    FETCH_TAURI_DOCS = "fetch_tauri_docs"
    FETCH_RUST_MANUAL = "fetch_rust_manual"
    SEARCH_RUST_MANUAL = "search_rust_manual"
    ANALYZE_CARGO_TOML = "analyze_cargo_toml"
    SUGGEST_IMPROVEMENTS = "suggest_improvements"
    GET_SERVER_STATUS = "get_server_status"


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolResult(BaseModel):
    """Payload of a ``call_tool`` reply.

    ``is_error`` marks a tool body failure delivered inside a successful
    JSON-RPC reply; callers have to check it in addition to the envelope.
    """
    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> 'ToolResult':
        return cls(content=[TextContent(text=text)])

    @classmethod
    def error(cls, message: str) -> 'ToolResult':
        return cls(content=[TextContent(text=f"Error: {message}")], is_error=True)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "content": [item.model_dump() for item in self.content],
            "isError": self.is_error
        }


@dataclass
class ToolSpec:
    """Descriptor of one tool plus the argument checks run before it."""
    name: ToolName
    description: str
    properties: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    required: Sequence[str] = ()

    def descriptor(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": "object", "properties": self.properties}
        if self.required:
            schema["required"] = list(self.required)
        return {
            "name": self.name.value,
            "description": self.description,
            "inputSchema": schema
        }

    def validate(self, arguments: Dict[str, Any]):
        """Raise ``InvalidParams`` for a missing required or mistyped argument."""
        for key in self.required:
            value = arguments.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise McpError(ErrorCode.INVALID_PARAMS, f"'{key}' parameter required")

        for key, schema in self.properties.items():
            value = arguments.get(key)
            if value is not None and schema.get("type") == "string" and not isinstance(value, str):
                raise McpError(ErrorCode.INVALID_PARAMS, f"'{key}' must be a string")


def build_catalog(frameworks: Sequence[str]) -> Dict[ToolName, ToolSpec]:
    """The fixed tool catalog; ``frameworks`` fills the framework enums."""
    framework_enum = sorted(frameworks)
    framework_prop = {"type": "string", "enum": framework_enum}
    specs = [
        ToolSpec(
            name=ToolName.FETCH_RUST_MANUAL,
            description="Fetch latest stable Rust manual"
        ),
        ToolSpec(
            name=ToolName.ANALYZE_CARGO_TOML,
            description="Analyze project dependencies from Cargo.toml",
            properties={"path": {"type": "string", "description": "Project directory containing Cargo.toml"}},
            required=("path",)
        ),
        ToolSpec(
            name=ToolName.SUGGEST_IMPROVEMENTS,
            description="Suggest documentation improvements based on code context",
            properties={"code_snippet": {"type": "string", "description": "Rust code to analyze"}},
            required=("code_snippet",)
        ),
        ToolSpec(
            name=ToolName.SEARCH_RUST_MANUAL,
            description="Search the Rust manual for a specific query",
            properties={"query": {"type": "string"}},
            required=("query",)
        ),
        ToolSpec(
            name=ToolName.FETCH_TAURI_DOCS,
            description="Fetch Tauri documentation"
        ),
        ToolSpec(
            name=ToolName.FETCH_LEPTOS_DOCS,
            description="Fetch Leptos documentation"
        ),
        ToolSpec(
            name=ToolName.SEARCH_OFFLINE_DOCS,
            description="Search the offline documentation database",
            properties={
                "query": {"type": "string", "description": "Search terms; any term may match"},
                "framework": dict(framework_prop)
            },
            required=("query",)
        ),
        ToolSpec(
            name=ToolName.GET_COMMON_PATTERNS,
            description="Get common code patterns for a framework",
            properties={"framework": {"type": "string", "enum": framework_enum + ["integration"]}},
            required=("framework",)
        ),
        ToolSpec(
            name=ToolName.FIND_ERROR_SOLUTION,
            description="Find solution for a common error",
            properties={
                "error": {"type": "string", "description": "Error message or part of it"},
                "framework": dict(framework_prop)
            },
            required=("error",)
        ),
        ToolSpec(
            name=ToolName.GET_SERVER_STATUS,
            description="Report store contents, uptime and configured documentation sources"
        ),
    ]
    return {spec.name: spec for spec in specs}


def format_search_results(results: List[Document]) -> str:
    if not results:
        return 'No matching documentation found.'

    blocks = []
    for doc in results:
        output = f"Title: {doc.title}\n"
        output += f"Category: {doc.category}\n"
        output += f"Framework: {doc.framework}\n"
        output += f"Content:\n{doc.content}\n"
        if doc.examples:
            output += '\nExamples:\n'
            for index, example in enumerate(doc.examples, start=1):
                output += f"{index}. {example}\n"
        blocks.append(output)
    return '\n---\n'.join(blocks)


def format_patterns(patterns: List[Pattern]) -> str:
    if not patterns:
        return 'No patterns found.'

    blocks = []
    for pattern in patterns:
        output = f"Pattern: {pattern.name}\n"
        output += f"Description: {pattern.description}\n"
        output += f"Category: {pattern.category}\n"
        output += 'Template:\n```rust\n'
        output += pattern.code_template.strip('\n')
        output += '\n```'
        blocks.append(output)
    return '\n---\n'.join(blocks)


def format_error_solutions(solutions: List[ErrorSolution]) -> str:
    if not solutions:
        return 'No solutions found for this error.'

    blocks = []
    for solution in solutions:
        output = f"Error: {solution.error_pattern}\n"
        output += f"Solution: {solution.solution}\n"
        if solution.example_fix:
            output += 'Example Fix:\n```rust\n'
            output += solution.example_fix.strip('\n')
            output += '\n```'
        blocks.append(output)
    return '\n---\n'.join(blocks)


def format_status(stats: Dict[str, int], uptime: float, requests_handled: int,
                  sources: Sequence[str], manual_cached: bool,
                  server_info: Optional[Dict[str, str]] = None) -> str:
    lines = []
    if server_info:
        lines.append(f"Server: {server_info.get('name')} {server_info.get('version')}")
    lines.append(f"Uptime: {uptime:.1f}s")
    lines.append(f"Requests handled: {requests_handled}")
    lines.append(f"Documents: {stats.get('documents', 0)} (indexed: {stats.get('indexed_documents', 0)})")
    lines.append(f"Tags: {stats.get('tags', 0)}")
    lines.append(f"Examples: {stats.get('examples', 0)}")
    lines.append(f"Patterns: {stats.get('patterns', 0)}")
    lines.append(f"Error solutions: {stats.get('error_solutions', 0)}")
    lines.append(f"Sources: {', '.join(sources) if sources else 'none'}")
    lines.append(f"Rust manual cached: {'yes' if manual_cached else 'no'}")
    return '\n'.join(lines)
