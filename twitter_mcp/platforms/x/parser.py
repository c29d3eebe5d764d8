import json
from typing import Any

from twitter_mcp.models import AccountMetrics, AccountSummary, PostMetrics, PostSummary

PROFILE_BASE_URL = "https://x.com"
# x.com resolves /i/status/<id> to the right author
PLACEHOLDER_HANDLE = "i"
ELLIPSIS = "…"


def truncate_text(text: str, max_length: int) -> str:
    """Cut text to at most max_length characters, ending with an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max(max_length - len(ELLIPSIS), 0)] + ELLIPSIS


def profile_url(username: str) -> str:
    return f"{PROFILE_BASE_URL}/{username}"


def post_url(post_id: str, username: str | None = None) -> str:
    return f"{PROFILE_BASE_URL}/{username or PLACEHOLDER_HANDLE}/status/{post_id}"


def normalize_account(raw: dict[str, Any]) -> AccountSummary:
    """Reshape a v2 user object into an AccountSummary."""
    username = raw.get("username", "")
    metrics = raw.get("public_metrics")
    return AccountSummary(
        id=str(raw.get("id", "")),
        name=raw.get("name", ""),
        username=username,
        description=raw.get("description"),
        created_at=raw.get("created_at"),
        metrics=AccountMetrics(
            followers_count=metrics.get("followers_count", 0),
            following_count=metrics.get("following_count", 0),
            tweet_count=metrics.get("tweet_count", 0),
            listed_count=metrics.get("listed_count", 0),
        ) if isinstance(metrics, dict) else None,
        url=profile_url(username),
    )


def index_authors(payload: dict[str, Any]) -> dict[str, AccountSummary]:
    """Map user id -> AccountSummary from the payload's includes.users expansion."""
    users = (payload.get("includes") or {}).get("users") or []
    return {str(u["id"]): normalize_account(u) for u in users if u.get("id")}


def normalize_post(
    raw: dict[str, Any],
    authors: dict[str, AccountSummary],
    max_text_length: int,
) -> PostSummary:
    """Reshape a v2 tweet object into a PostSummary, attaching its author when known."""
    post_id = str(raw.get("id", ""))
    author_id = raw.get("author_id")
    author = authors.get(str(author_id)) if author_id else None
    metrics = raw.get("public_metrics")
    return PostSummary(
        id=post_id,
        text=truncate_text(raw.get("text", ""), max_text_length),
        author_id=str(author_id) if author_id else None,
        author=author,
        created_at=raw.get("created_at"),
        metrics=PostMetrics(
            like_count=metrics.get("like_count", 0),
            reply_count=metrics.get("reply_count", 0),
            retweet_count=metrics.get("retweet_count", 0),
            quote_count=metrics.get("quote_count", 0),
        ) if isinstance(metrics, dict) else None,
        url=post_url(post_id, author.username if author else None),
    )


def normalize_posts(payload: dict[str, Any], max_text_length: int) -> list[PostSummary]:
    """Normalize payload["data"] in upstream order."""
    authors = index_authors(payload)
    return [normalize_post(p, authors, max_text_length) for p in payload.get("data") or []]


def extract_error_message(payload: Any, raw_text: str) -> str:
    """Pick the most specific message from an X API error body.

    Falls back through: detail -> title -> error -> errors[0] -> raw body text.
    """
    if isinstance(payload, dict):
        for key in ("detail", "title", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            first = errors[0]
            for key in ("detail", "message", "title"):
                value = first.get(key)
                if isinstance(value, str) and value:
                    return value
    if raw_text:
        return raw_text
    return json.dumps(payload) if payload is not None else "empty response"
