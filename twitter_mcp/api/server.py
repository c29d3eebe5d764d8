"""FastAPI app exposing the MCP server over streamable HTTP.

Routes:
  POST   /mcp     JSON-RPC envelope, handed to the MCP session manager
  GET    /mcp     405
  DELETE /mcp     405
  GET    /health  static liveness payload, no auth
"""
import logging
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.types import Receive, Scope, Send

from twitter_mcp.agent.core import SERVER_NAME, build_mcp_server
from twitter_mcp.config import AppConfig, AuthRequired
from twitter_mcp.platforms.x.client import XClient

_log = logging.getLogger(__name__)

MCP_PATH = "/mcp"
API_KEY_HEADER = "x-api-key"

UNAUTHORIZED_CODE = -32001
SERVER_ERROR_CODE = -32000


def _rpc_error(status_code: int, code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": None},
        status_code=status_code,
    )


class _McpEndpoint:
    """Raw ASGI endpoint: every POST /mcp goes straight to the session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self._session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._session_manager.handle_request(scope, receive, send)


def _is_authorized(config: AppConfig, request: Request) -> bool:
    if not isinstance(config.auth, AuthRequired):
        return True
    key = request.headers.get(API_KEY_HEADER)
    if not key:
        return False
    return secrets.compare_digest(key.encode(), config.auth.secret.encode())


def create_app(config: AppConfig, client: XClient | None = None) -> FastAPI:
    """Build the HTTP app. The MCP server and its transport are created once here.

    A client passed in stays owned by the caller and is not closed on shutdown.
    """
    owns_client = client is None
    if owns_client:
        client = XClient(
            config.bearer_token,
            base_url=config.api_base_url,
            max_text_length=config.max_text_length,
            timeout=config.request_timeout,
        )
    # No per-client sessions: each POST is a self-contained JSON-RPC exchange.
    session_manager = StreamableHTTPSessionManager(
        app=build_mcp_server(client),
        json_response=True,
        stateless=True,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if isinstance(config.auth, AuthRequired):
            _log.info("API key authentication enabled for %s", MCP_PATH)
        else:
            _log.warning("MCP_SERVER_API_KEY not set: %s accepts unauthenticated requests", MCP_PATH)
        async with session_manager.run():
            try:
                yield
            finally:
                if owns_client:
                    await client.aclose()

    app = FastAPI(title=SERVER_NAME, lifespan=lifespan)
    app.state.config = config
    app.state.client = client

    @app.middleware("http")
    async def _guard_mcp(request: Request, call_next):
        if request.url.path != MCP_PATH or request.method != "POST":
            return await call_next(request)

        if not _is_authorized(config, request):
            client_host = request.client.host if request.client else "unknown"
            _log.warning("Unauthorized MCP request from %s", client_host)
            return _rpc_error(401, UNAUTHORIZED_CODE, "Unauthorized MCP request")

        try:
            return await call_next(request)
        except Exception:
            _log.exception("Unhandled MCP error")
            return _rpc_error(500, SERVER_ERROR_CODE, "Internal MCP error")

    @app.get("/health")
    def health():
        """Liveness probe; does not touch the X API."""
        return {"status": "ok", "service": SERVER_NAME}

    @app.api_route(MCP_PATH, methods=["GET", "DELETE"], include_in_schema=False)
    async def mcp_method_not_allowed():
        return _rpc_error(405, SERVER_ERROR_CODE, "Method not allowed")

    app.router.add_route(
        MCP_PATH,
        _McpEndpoint(session_manager),
        methods=["POST"],
        include_in_schema=False,
    )
    return app
