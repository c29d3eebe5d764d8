"""HTTP-level tests: auth gate, method handling, health and MCP round trips."""
import asyncio
import json
from dataclasses import replace

import pytest
from conftest import make_tweet, make_user
from fastapi.testclient import TestClient
from mcp import types

from twitter_mcp.agent.core import build_mcp_server
from twitter_mcp.api import server as server_module
from twitter_mcp.api.server import create_app
from twitter_mcp.config import AuthDisabled, AuthRequired, load_config

SECRET = "s3cret"
MCP_HEADERS = {
    "accept": "application/json, text/event-stream",
    "content-type": "application/json",
}


def _config(auth=AuthRequired(SECRET)):
    config = load_config({"TWITTER_BEARER_TOKEN": "tok", "MCP_SERVER_API_KEY": SECRET})
    return replace(config, auth=auth)


def _rpc(method: str, params: dict | None = None, request_id: int = 1) -> dict:
    body = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        body["params"] = params
    return body


@pytest.fixture
def http(upstream):
    app = create_app(_config(), client=upstream.client())
    with TestClient(app) as client:
        yield client


# ── Health ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("headers", [{}, {"x-api-key": SECRET}, {"x-api-key": "wrong"}])
def test_health_is_unauthenticated(http, headers):
    response = http.get("/health", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "twitter-mcp-server"}


# ── Method handling ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("method", ["GET", "DELETE"])
@pytest.mark.parametrize("headers", [{}, {"x-api-key": SECRET}])
def test_mcp_rejects_get_and_delete(http, method, headers):
    response = http.request(method, "/mcp", headers=headers)
    assert response.status_code == 405
    assert response.json()["error"]["code"] == -32000


# ── Auth gate ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("headers", [{}, {"x-api-key": ""}, {"x-api-key": "nope"}])
def test_mcp_requires_api_key(http, upstream, headers):
    response = http.post("/mcp", headers={**MCP_HEADERS, **headers}, content=b"not even json")

    assert response.status_code == 401
    body = response.json()
    assert body["jsonrpc"] == "2.0"
    assert body["error"]["code"] == -32001
    assert body["id"] is None
    assert upstream.requests == []


def test_auth_disabled_accepts_requests_without_key(upstream):
    app = create_app(_config(auth=AuthDisabled()), client=upstream.client())
    with TestClient(app) as client:
        response = client.post("/mcp", headers=MCP_HEADERS, json=_rpc("tools/list", {}))
    assert response.status_code == 200
    assert len(response.json()["result"]["tools"]) == 6


# ── MCP over HTTP ────────────────────────────────────────────────────────────

def test_tools_list(http):
    response = http.post("/mcp", headers={**MCP_HEADERS, "x-api-key": SECRET}, json=_rpc("tools/list", {}))

    assert response.status_code == 200
    tools = {t["name"]: t for t in response.json()["result"]["tools"]}
    assert set(tools) == {
        "health", "search_tweets", "get_user_tweets",
        "get_tweet_by_id", "search_users", "get_authenticated_profile",
    }
    assert tools["search_tweets"]["inputSchema"]["properties"]["limit"]["maximum"] == 50
    assert tools["search_tweets"]["annotations"]["readOnlyHint"] is True


def test_tools_call_returns_json_content(http, upstream):
    upstream.add("/tweets/123", {"data": make_tweet("123"), "includes": {"users": [make_user()]}})
    response = http.post(
        "/mcp",
        headers={**MCP_HEADERS, "x-api-key": SECRET},
        json=_rpc("tools/call", {"name": "get_tweet_by_id", "arguments": {"id": "123"}}),
    )

    assert response.status_code == 200
    result = response.json()["result"]
    assert not result.get("isError")
    tweet = json.loads(result["content"][0]["text"])
    assert tweet["url"] == "https://x.com/karpathy/status/123"


def test_tools_call_validation_error_is_a_result(http, upstream):
    response = http.post(
        "/mcp",
        headers={**MCP_HEADERS, "x-api-key": SECRET},
        json=_rpc("tools/call", {"name": "search_tweets", "arguments": {"query": "", "limit": 99}}),
    )

    assert response.status_code == 200
    body = response.json()
    assert "error" not in body
    assert body["result"]["content"][0]["text"].startswith("Invalid arguments for search_tweets")
    assert upstream.requests == []


def test_unhandled_error_returns_500(http, monkeypatch):
    async def _boom(self, scope, receive, send):
        raise RuntimeError("transport exploded")

    monkeypatch.setattr(server_module._McpEndpoint, "__call__", _boom)
    response = http.post("/mcp", headers={**MCP_HEADERS, "x-api-key": SECRET}, json=_rpc("tools/list", {}))

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == -32000
    assert error["message"] == "Internal MCP error"


# ── Wiring and lifecycle ─────────────────────────────────────────────────────

def test_mcp_server_registers_tool_handlers(upstream):
    server = build_mcp_server(upstream.client())
    assert types.ListToolsRequest in server.request_handlers
    assert types.CallToolRequest in server.request_handlers


def test_caller_owned_client_survives_shutdown(upstream):
    client = upstream.client()
    with TestClient(create_app(_config(), client=client)):
        pass
    assert not client.is_closed
    asyncio.run(client.aclose())


def test_app_built_client_is_closed_on_shutdown():
    app = create_app(_config())
    with TestClient(app):
        assert not app.state.client.is_closed
    assert app.state.client.is_closed
