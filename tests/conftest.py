"""Shared stub for the X API: an httpx.MockTransport with canned routes."""
from typing import Any

import httpx
import pytest

from twitter_mcp.platforms.x.client import XClient

BASE_URL = "https://api.x.test/2"


class StubUpstream:
    """Routes keyed by path (without the /2 prefix); records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, json: Any = None, status: int = 200, text: str | None = None) -> None:
        if text is not None:
            self.routes[path] = {"status_code": status, "text": text}
        else:
            self.routes[path] = {"status_code": status, "json": json}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/2")
        if path not in self.routes:
            return httpx.Response(404, json={"title": "Not Found Error", "detail": f"no stub for {path}"})
        return httpx.Response(**self.routes[path])

    @property
    def paths(self) -> list[str]:
        return [r.url.path.removeprefix("/2") for r in self.requests]

    def client(self, **kwargs: Any) -> XClient:
        return XClient(
            "test-token",
            base_url=BASE_URL,
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


@pytest.fixture
def upstream() -> StubUpstream:
    return StubUpstream()


def make_user(user_id: str = "42", username: str = "karpathy", name: str = "Andrej Karpathy") -> dict:
    return {
        "id": user_id,
        "name": name,
        "username": username,
        "description": "Building things.",
        "created_at": "2009-04-21T06:49:15.000Z",
        "public_metrics": {
            "followers_count": 1000,
            "following_count": 10,
            "tweet_count": 500,
            "listed_count": 3,
        },
    }


def make_tweet(tweet_id: str, text: str = "hello", author_id: str | None = "42") -> dict:
    tweet = {
        "id": tweet_id,
        "text": text,
        "created_at": "2024-01-01T12:00:00.000Z",
        "public_metrics": {"like_count": 7, "reply_count": 1, "retweet_count": 2, "quote_count": 0},
    }
    if author_id is not None:
        tweet["author_id"] = author_id
    return tweet
