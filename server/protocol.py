# rustdoc-mcp protocol engine - line-delimited JSON-RPC 2.0 over stdio
# One JSON object per line in each direction. Requests are handled strictly
# one at a time; notifications may be pushed between replies.

import sys, json, time, asyncio, logging
from enum import IntEnum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Union, Callable, Awaitable, TextIO

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
# Lines longer than this are rejected with a parse error.
MAX_LINE_BYTES = 16 * 1024 * 1024

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


class ErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class McpError(Exception):
    """An error carrying a JSON-RPC code, sent to the peer as-is."""

    def __init__(self, code: Union[ErrorCode, int], message: str):
        super().__init__(message)
        self.code = int(code)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass
class JSONRPCRequest:
    jsonrpc: str
    method: str
    id: Optional[Union[str, int]] = None
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return self.id is None


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


def error_response(request_id: Union[str, int], code: Union[ErrorCode, int], message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": int(code), "message": message}
    }


class StreamLineReader:
    """Adapts a blocking binary stream (e.g. a redirected file) to ``readline()``."""

    def __init__(self, stream):
        self._reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        self._reader.feed_data(stream.read())
        self._reader.feed_eof()

    async def readline(self) -> bytes:
        return await self._reader.readline()


class JSONRPCServer:
    """Dispatches JSON-RPC requests read line by line to registered handlers."""

    def __init__(self,
                 name: str,
                 version: str,
                 protocol_version: str = "2024-11-05",
                 capabilities: Optional[Dict[str, Any]] = None,
                 output: Optional[TextIO] = None,
                 heartbeat_interval: float = 0.0,
                 shutdown_grace: float = 0.1):
        self.server_info = {"name": name, "version": version}
        self.protocol_version = protocol_version
        self.capabilities = capabilities if capabilities is not None else {"tools": {}}
        self.output = output
        self.heartbeat_interval = heartbeat_interval
        self.shutdown_grace = shutdown_grace

        self._handlers: Dict[str, Handler] = {}
        self._next_id = 1
        self._pending: Dict[Union[str, int], asyncio.Future] = {}
        self._stop_event: Optional[asyncio.Event] = None
        self.started_at = time.monotonic()
        self.requests_handled = 0
        self.session_initialized = False

        self.register_handler("initialize", self.handle_initialize)
        self.register_handler("shutdown", self.handle_shutdown)
        self.register_handler("notifications/initialized", self.handle_initialized)

    def register_handler(self, method: str, handler: Handler):
        """Register ``handler`` for ``method``, replacing any previous one."""
        self._handlers[method] = handler

    @property
    def methods(self):
        return sorted(self._handlers)

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def _allocate_id(self) -> int:
        request_id = self._next_id
        self._next_id += 1
        return request_id

    # Built-in methods

    async def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle MCP initialize request"""
        client_info = params.get("clientInfo") or {}
        logger.info(f"Initializing MCP session with client: {client_info.get('name', 'unknown')}")
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": self.capabilities,
            "serverInfo": self.server_info
        }

    async def handle_initialized(self, params: Dict[str, Any]) -> None:
        self.session_initialized = True
        logger.info("MCP session initialized successfully")

    async def handle_shutdown(self, params: Dict[str, Any]) -> None:
        """Schedule a stop after the grace delay; in-flight work is not interrupted."""
        logger.info(f"Shutdown requested, stopping in {self.shutdown_grace}s")
        asyncio.get_running_loop().call_later(self.shutdown_grace, self.request_stop)
        return None

    # Message handling

    async def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Handle one input line and return the reply to send, if any."""
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Parse error: {e}")
            return error_response(self._allocate_id(), ErrorCode.PARSE_ERROR, "Parse error")

        if not isinstance(message, dict):
            return error_response(self._allocate_id(), ErrorCode.PARSE_ERROR, "Parse error: expected a JSON object")

        if "method" not in message and ("result" in message or "error" in message):
            self._resolve_pending(message)
            return None

        method = message.get("method")
        request_id = message.get("id")
        if not isinstance(method, str) or not method or (request_id is not None and not _is_valid_id(request_id)):
            return error_response(self._allocate_id(), ErrorCode.PARSE_ERROR, "Parse error: invalid request envelope")

        if message.get("jsonrpc") != JSONRPC_VERSION:
            if request_id is None:
                logger.warning(f"Dropping notification with invalid JSON-RPC version: {method}")
                return None
            return error_response(request_id, ErrorCode.INVALID_REQUEST, "Invalid JSON-RPC version")

        params = message.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            if request_id is None:
                return None
            return error_response(request_id, ErrorCode.INVALID_PARAMS, "Params must be an object")

        request = JSONRPCRequest(jsonrpc=JSONRPC_VERSION, method=method, id=request_id, params=params)
        if request.is_notification:
            await self.handle_notification(request)
            return None
        return await self.handle_request(request)

    async def handle_notification(self, request: JSONRPCRequest):
        """Run the handler for a peer notification; nothing is ever replied."""
        handler = self._handlers.get(request.method)
        if handler is None:
            logger.debug(f"Ignoring notification without handler: {request.method}")
            return
        try:
            await handler(request.params)
        except Exception as e:
            logger.error(f"Error handling notification {request.method}: {e}")

    async def handle_request(self, request: JSONRPCRequest) -> Dict[str, Any]:
        """Main request handler following JSON-RPC 2.0 spec"""
        self.requests_handled += 1
        context = {"request_id": request.id, "method": request.method}
        logger.debug(f"Handling request {request.id} ({request.method})", extra=context)
        try:
            handler = self._handlers.get(request.method)
            if handler is None:
                raise McpError(ErrorCode.METHOD_NOT_FOUND, f"Method not found: {request.method}")

            result = await handler(request.params)
            return {
                "jsonrpc": JSONRPC_VERSION,
                "id": request.id,
                "result": result
            }

        except McpError as e:
            logger.info(f"Request {request.id} ({request.method}) failed: {e.code} {e.message}", extra=context)
            return error_response(request.id, e.code, e.message)
        except Exception as e:
            logger.exception(f"Error handling request {request.id} ({request.method})", extra=context)
            return error_response(request.id, ErrorCode.INTERNAL_ERROR, str(e) or "Unknown error")

    def _resolve_pending(self, message: Dict[str, Any]):
        future = self._pending.pop(message.get("id"), None)
        if future is None:
            logger.warning(f"Received reply for unknown request id: {message.get('id')}")
            return
        if future.done():
            return
        if "error" in message:
            error = message.get("error") or {}
            future.set_exception(McpError(
                error.get("code", ErrorCode.INTERNAL_ERROR),
                error.get("message", "Unknown error")
            ))
        else:
            future.set_result(message.get("result"))

    # Output

    def write_message(self, message: Dict[str, Any]):
        """Write one frame. A single write+flush, so frames never interleave."""
        output = self.output or sys.stdout
        output.write(json.dumps(message) + "\n")
        output.flush()

    async def send_notification(self, method: str, params: Optional[Dict[str, Any]] = None):
        self.write_message({
            "jsonrpc": JSONRPC_VERSION,
            "method": method,
            "params": params or {}
        })

    def send_request(self, method: str, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        """Send a server-initiated request and return a future for its reply.

        The reply is only read by the serve loop, so the future must not be
        awaited from inside a request handler.
        """
        request_id = self._allocate_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        self.write_message({
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "method": method,
            "params": params or {}
        })
        return future

    # Lifecycle

    def _get_stop_event(self) -> asyncio.Event:
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        return self._stop_event

    def request_stop(self):
        """Stop the serve loop before the next line is read."""
        self._get_stop_event().set()

    @property
    def stopping(self) -> bool:
        return self._stop_event is not None and self._stop_event.is_set()

    async def _heartbeat_loop(self):
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            await self.send_notification("notifications/heartbeat", {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": round(self.uptime, 3),
                "requestsHandled": self.requests_handled
            })

    async def serve(self, reader):
        """Read and handle lines from ``reader`` until EOF or a stop request."""
        stop_event = self._get_stop_event()
        while not stop_event.is_set():
            read_task = asyncio.ensure_future(reader.readline())
            stop_task = asyncio.ensure_future(stop_event.wait())
            done, _ = await asyncio.wait({read_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            stop_task.cancel()
            if read_task not in done:
                read_task.cancel()
                break

            try:
                raw = read_task.result()
            except ValueError as e:
                # asyncio.LimitOverrunError surfaces as ValueError from readline()
                logger.warning(f"Discarding oversized input line: {e}")
                self.write_message(error_response(self._allocate_id(), ErrorCode.PARSE_ERROR, "Parse error: line too long"))
                continue

            if not raw:
                logger.info("Input stream closed")
                break

            line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
            line = line.strip()
            if not line:
                continue

            response = await self.handle_line(line)
            if response is not None:
                self.write_message(response)

    async def run(self, reader):
        """Serve ``reader`` with the heartbeat running alongside."""
        heartbeat = None
        if self.heartbeat_interval > 0:
            heartbeat = asyncio.create_task(self._heartbeat_loop())

        await self.send_notification("notifications/ready", {
            "serverInfo": self.server_info,
            "methods": self.methods
        })
        try:
            await self.serve(reader)
        finally:
            if heartbeat is not None:
                heartbeat.cancel()
                try:
                    await heartbeat
                except asyncio.CancelledError:
                    pass
            for future in self._pending.values():
                future.cancel()
            self._pending.clear()

    async def run_stdio(self):
        """Serve the process's stdin/stdout."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        try:
            await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        except ValueError:
            # stdin redirected from a regular file
            logger.info("stdin is not a pipe, reading it in full")
            reader = StreamLineReader(sys.stdin.buffer)

        logger.info(f"Starting {self.server_info['name']} in stdio mode")
        await self.run(reader)
