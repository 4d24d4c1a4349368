# rustdoc-mcp MCP Server - Rust documentation tools over JSON-RPC 2.0
# Serves the offline documentation store and the documentation fetchers
# as named tools through list_tools / call_tool.

import sys, asyncio, logging, argparse, tomllib
from typing import Dict, Any, Callable, Awaitable, Optional, TextIO

from config import ServerConfig
from indexer.errors import NotInitializedError
from indexer.sqlite_store import DocumentStore
from observability.logging import setup_logging
from pipelines.crates import CratesClient
from pipelines.doc_fetcher import DocFetcher
from pipelines.errors import ToolError
from pipelines.github import GitHubClient
from pipelines.http import HttpFetcher
from pipelines.rust_manual import RustManual
from sources.loader import SourceConfig, get_enabled_sources

from .protocol import ErrorCode, JSONRPCServer, McpError
from .tools import (
    ToolName,
    ToolResult,
    build_catalog,
    format_error_solutions,
    format_patterns,
    format_search_results,
    format_status,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]


class RustDocServer(JSONRPCServer):
    """JSON-RPC server exposing the documentation tools."""

    def __init__(self,
                 store: DocumentStore,
                 config: Optional[ServerConfig] = None,
                 fetcher: Optional[HttpFetcher] = None,
                 sources: Optional[Dict[str, SourceConfig]] = None,
                 output: Optional[TextIO] = None):
        config = config or ServerConfig()
        super().__init__(
            name=config.name,
            version=config.version,
            protocol_version=config.protocol_version,
            capabilities={"tools": {"listChanged": False}},
            output=output,
            heartbeat_interval=config.heartbeat_interval,
            shutdown_grace=config.shutdown_grace
        )
        self.config = config
        self.store = store
        self.http = fetcher or HttpFetcher.from_config(config.http)
        self.sources = sources if sources is not None else get_enabled_sources()

        self.github = GitHubClient(self.http, token=config.http.github_token)
        self.crates = CratesClient(self.http)
        self.manual = RustManual(self.http)
        self.doc_fetcher = DocFetcher(store, self.http, self.github, self.sources)

        self.catalog = build_catalog(frameworks=list(self.sources))
        self._tools: Dict[ToolName, ToolHandler] = {
            ToolName.SEARCH_OFFLINE_DOCS: self._tool_search_offline_docs,
            ToolName.GET_COMMON_PATTERNS: self._tool_get_common_patterns,
            ToolName.FIND_ERROR_SOLUTION: self._tool_find_error_solution,
            ToolName.FETCH_LEPTOS_DOCS: self._tool_fetch_leptos_docs,
            ToolName.FETCH_TAURI_DOCS: self._tool_fetch_tauri_docs,
            ToolName.FETCH_RUST_MANUAL: self._tool_fetch_rust_manual,
            ToolName.SEARCH_RUST_MANUAL: self._tool_search_rust_manual,
            ToolName.ANALYZE_CARGO_TOML: self._tool_analyze_cargo_toml,
            ToolName.SUGGEST_IMPROVEMENTS: self._tool_suggest_improvements,
            ToolName.GET_SERVER_STATUS: self._tool_get_server_status,
        }
        missing = set(ToolName) - set(self._tools)
        if missing:
            raise RuntimeError(f"Tools without a handler: {sorted(t.value for t in missing)}")

        self.register_handler("list_tools", self.handle_list_tools)
        self.register_handler("call_tool", self.handle_call_tool)

    async def start(self):
        """Initialize the store and seed it; must complete before serving input."""
        await self.store.initialize()
        if self.config.seed_on_start:
            seeded = await self.doc_fetcher.seed_all()
            logger.info(f"Seeded {seeded} built-in records")

    async def close(self):
        await self.http.close()
        await self.store.close()

    async def handle_list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """List available MCP tools"""
        return {"tools": [spec.descriptor() for spec in self.catalog.values()]}

    async def handle_call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a tool.

        Bad arguments, unknown tools and an unready store fail the request.
        Anything that goes wrong inside the tool itself comes back as a
        successful reply whose payload has ``isError`` set.
        """
        name = params.get("name")
        if not name or not isinstance(name, str):
            raise McpError(ErrorCode.INVALID_PARAMS, "Tool name is required")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise McpError(ErrorCode.INVALID_PARAMS, "Tool arguments must be an object")

        try:
            tool = ToolName(name)
        except ValueError:
            raise McpError(ErrorCode.METHOD_NOT_FOUND, f"Unknown tool: {name}")

        self.catalog[tool].validate(arguments)

        if not self.store.is_initialized:
            raise NotInitializedError(f"call_tool {name}")

        try:
            result = await self._tools[tool](arguments)
        except (McpError, NotInitializedError):
            raise
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True, extra={"tool": name})
            result = ToolResult.error(str(e) or type(e).__name__)

        return result.to_payload()

    # Store-backed tools

    async def _tool_search_offline_docs(self, args: Dict[str, Any]) -> ToolResult:
        results = await self.store.search(args["query"], args.get("framework") or None)
        return ToolResult.text(format_search_results(results))

    async def _tool_get_common_patterns(self, args: Dict[str, Any]) -> ToolResult:
        patterns = await self.store.patterns_by_framework(args["framework"])
        return ToolResult.text(format_patterns(patterns))

    async def _tool_find_error_solution(self, args: Dict[str, Any]) -> ToolResult:
        solutions = await self.store.find_error_solutions(args["error"])
        framework = args.get("framework")
        if framework:
            solutions = [s for s in solutions if s.framework in (None, framework)]
        return ToolResult.text(format_error_solutions(solutions))

    async def _tool_get_server_status(self, args: Dict[str, Any]) -> ToolResult:
        stats = await self.store.stats()
        return ToolResult.text(format_status(
            stats,
            uptime=self.uptime,
            requests_handled=self.requests_handled,
            sources=sorted(self.sources),
            manual_cached=self.manual.is_cached,
            server_info=self.server_info
        ))

    # Collaborator-backed tools

    async def _fetch_source(self, name: str) -> ToolResult:
        source = self.doc_fetcher.get_source(name)
        summary = await self.doc_fetcher.fetch(name)
        return ToolResult.text(summary.format(source.title))

    async def _tool_fetch_leptos_docs(self, args: Dict[str, Any]) -> ToolResult:
        return await self._fetch_source("leptos")

    async def _tool_fetch_tauri_docs(self, args: Dict[str, Any]) -> ToolResult:
        return await self._fetch_source("tauri")

    async def _tool_fetch_rust_manual(self, args: Dict[str, Any]) -> ToolResult:
        await self.manual.fetch(refresh=True)
        return ToolResult.text("Rust manual fetched successfully")

    async def _tool_search_rust_manual(self, args: Dict[str, Any]) -> ToolResult:
        matches = await self.manual.search(args["query"])
        if not matches:
            return ToolResult.text("No results found in the Rust manual.")
        return ToolResult.text('\n---\n'.join(matches))

    async def _tool_analyze_cargo_toml(self, args: Dict[str, Any]) -> ToolResult:
        try:
            report = await self.crates.analyze_manifest(args["path"])
        except tomllib.TOMLDecodeError as e:
            raise ToolError(f"Error parsing 'Cargo.toml': {e}") from e
        return ToolResult.text(report)

    async def _tool_suggest_improvements(self, args: Dict[str, Any]) -> ToolResult:
        return ToolResult.text(await self.crates.suggest_documentation(args["code_snippet"]))


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rust documentation MCP server")
    parser.add_argument("--stdio", action="store_true", help="Serve JSON-RPC over stdin/stdout")
    parser.add_argument("--db-path", help="SQLite database path (recreated on startup)")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--no-seed", action="store_true", help="Do not load built-in patterns and error solutions")
    return parser.parse_args(argv)


async def main(argv=None):
    """Main entry point for MCP server"""
    args = parse_args(argv)
    config = ServerConfig.from_env()
    if args.db_path:
        config.db_path = args.db_path
    if args.log_level:
        config.log_level = args.log_level
    if args.no_seed:
        config.seed_on_start = False

    setup_logging(level=config.log_level, service_name=config.name,
                  log_file=config.log_file, use_json=config.log_json)

    server = RustDocServer(DocumentStore(config.db_path), config)

    if not args.stdio:
        print(f"{config.name} {config.version}")
        print("Usage: rustdoc-mcp --stdio")
        print("\nAvailable tools:")
        for spec in server.catalog.values():
            print(f"  - {spec.name.value}: {spec.description}")
        return

    try:
        await server.start()
        await server.run_stdio()
    finally:
        await server.close()


def run():
    asyncio.run(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
