"""Tool registry: argument models, descriptions and handlers for every MCP tool.

Each tool validates its arguments with a pydantic model before touching the
network, then calls XClient and returns a JSON payload. call_tool() is the
single entry point and always returns content; it never raises.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from mcp import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from twitter_mcp.agent.formatter import (
    format_upstream_error,
    format_validation_error,
    json_content,
    text_content,
)
from twitter_mcp.platforms.x.client import XClient
from twitter_mcp.platforms.x.errors import UpstreamError
from twitter_mcp.platforms.x.parser import post_url

_log = logging.getLogger(__name__)


# ── Argument models ──────────────────────────────────────────────────────────

class _ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True, str_strip_whitespace=True)


class NoInput(_ToolInput):
    pass


class SearchTweetsInput(_ToolInput):
    query: str = Field(min_length=1, description="Full-text search query (recent search syntax)")
    limit: int = Field(10, ge=1, le=50, description="Maximum number of tweets to return")


class UserTweetsInput(_ToolInput):
    username: str = Field(min_length=1, description="X username, with or without @")
    limit: int = Field(10, ge=1, le=50, description="Maximum number of tweets to return")

    @field_validator("username", mode="before")
    @classmethod
    def _drop_at_sign(cls, value: Any) -> Any:
        # Length is checked on the bare handle, so "@" alone is rejected.
        if isinstance(value, str):
            return value.strip().lstrip("@")
        return value


class TweetIdInput(_ToolInput):
    id: str = Field(min_length=1, description="Tweet ID")


class SearchUsersInput(_ToolInput):
    query: str = Field(min_length=1, description="Name or handle to search for")
    limit: int = Field(10, ge=1, le=25, description="Maximum number of users to return")


# ── Handlers ─────────────────────────────────────────────────────────────────

async def _health(client: XClient, args: NoInput) -> dict[str, Any]:
    return {"status": "ok", "message": "Twitter MCP server is reachable"}


async def _search_tweets(client: XClient, args: SearchTweetsInput) -> dict[str, Any]:
    tweets = await client.search_recent_posts(args.query, args.limit)
    return {"query": args.query, "count": len(tweets), "tweets": tweets}


async def _get_user_tweets(client: XClient, args: UserTweetsInput) -> dict[str, Any]:
    user = await client.get_account_by_handle(args.username)
    tweets = await client.get_account_posts(user.id, args.limit)
    # The timeline expansion may omit the author; we already know who it is.
    tweets = [
        t.model_copy(update={"author": user, "url": post_url(t.id, user.username)})
        if t.author is None and t.author_id in (None, user.id) else t
        for t in tweets
    ]
    return {"user": user, "count": len(tweets), "tweets": tweets}


async def _get_tweet_by_id(client: XClient, args: TweetIdInput) -> Any:
    return await client.get_post_by_id(args.id)


async def _search_users(client: XClient, args: SearchUsersInput) -> dict[str, Any]:
    users = await client.search_accounts(args.query, args.limit)
    return {"query": args.query, "count": len(users), "users": users}


async def _get_authenticated_profile(client: XClient, args: NoInput) -> Any:
    return await client.get_authenticated_profile()


# ── Registry ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ToolDefinition:
    name: str
    title: str
    description: str
    input_model: type[_ToolInput]
    handler: Callable[[XClient, Any], Awaitable[Any]]

    def input_schema(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            title=self.title,
            description=self.description,
            inputSchema=self.input_schema(),
            annotations=types.ToolAnnotations(
                title=self.title,
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=self.name != "health",
            ),
        )


TOOLS: dict[str, ToolDefinition] = {
    tool.name: tool
    for tool in (
        ToolDefinition(
            name="health",
            title="Health check",
            description="Check connectivity to the Twitter MCP server.",
            input_model=NoInput,
            handler=_health,
        ),
        ToolDefinition(
            name="search_tweets",
            title="Search recent tweets",
            description="Search recent tweets that match the provided query string (recent search API).",
            input_model=SearchTweetsInput,
            handler=_search_tweets,
        ),
        ToolDefinition(
            name="get_user_tweets",
            title="Get a user's tweets",
            description="Fetch recent tweets for a given Twitter username.",
            input_model=UserTweetsInput,
            handler=_get_user_tweets,
        ),
        ToolDefinition(
            name="get_tweet_by_id",
            title="Get tweet by ID",
            description="Retrieve a single tweet by its ID with public metrics.",
            input_model=TweetIdInput,
            handler=_get_tweet_by_id,
        ),
        ToolDefinition(
            name="search_users",
            title="Search users",
            description="Search for Twitter users by name or handle.",
            input_model=SearchUsersInput,
            handler=_search_users,
        ),
        ToolDefinition(
            name="get_authenticated_profile",
            title="Get authenticated profile",
            description=(
                "Return profile information for the account associated "
                "with the configured bearer token."
            ),
            input_model=NoInput,
            handler=_get_authenticated_profile,
        ),
    )
}


async def call_tool(
    client: XClient,
    name: str,
    arguments: dict[str, Any] | None,
) -> list[types.TextContent]:
    """Validate arguments, run the named tool and wrap the outcome as content."""
    tool = TOOLS.get(name)
    if tool is None:
        return text_content(f"Unknown tool: {name}")

    try:
        args = tool.input_model.model_validate(arguments or {})
    except ValidationError as exc:
        _log.info("%s rejected %d invalid argument(s)", name, exc.error_count())
        return text_content(format_validation_error(name, exc))

    try:
        result = await tool.handler(client, args)
    except UpstreamError as exc:
        _log.error("%s failed: %s", name, exc)
        return text_content(format_upstream_error(exc))
    except Exception as exc:
        _log.exception("%s failed unexpectedly", name)
        return text_content(format_upstream_error(exc))

    return json_content(result)
