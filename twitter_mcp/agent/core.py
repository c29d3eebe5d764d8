"""MCP protocol adapter: exposes the tool registry through an mcp low-level Server.

JSON-RPC framing, tools/list and tools/call routing are handled by the SDK;
this module only binds the registry and the shared XClient to it.
"""
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server

from twitter_mcp.agent.tools import TOOLS, call_tool
from twitter_mcp.platforms.x.client import XClient

SERVER_NAME = "twitter-mcp-server"


def server_version() -> str:
    try:
        return version("twitter-mcp")
    except PackageNotFoundError:
        return "0.0.0"


def build_mcp_server(client: XClient) -> Server:
    """Create the MCP server with every tool in TOOLS registered."""
    server: Server = Server(SERVER_NAME, version=server_version())

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return [tool.to_mcp_tool() for tool in TOOLS.values()]

    # Arguments are validated by each tool's own model so failures come back as text.
    @server.call_tool(validate_input=False)
    async def _call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        return await call_tool(client, name, arguments)

    return server
