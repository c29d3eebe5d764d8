"""Async client for the read-only subset of the X (Twitter) API v2 used by the tools.

Each public method issues authenticated GET requests through one shared
httpx.AsyncClient and returns normalized models. Failures raise an
UpstreamError subclass; nothing is retried.
"""
import logging
import urllib.parse
from typing import Any

import httpx

from twitter_mcp.config import DEFAULT_API_BASE_URL, DEFAULT_MAX_TEXT_LENGTH, DEFAULT_TIMEOUT_SECONDS
from twitter_mcp.models import AccountSummary, PostSummary
from twitter_mcp.platforms.x.errors import (
    NotFoundError,
    UpstreamHttpError,
    UpstreamMalformedBody,
    UpstreamReportedError,
)
from twitter_mcp.platforms.x.parser import (
    extract_error_message,
    index_authors,
    normalize_account,
    normalize_post,
    normalize_posts,
)

_log = logging.getLogger(__name__)

USER_FIELDS = "id,name,username,created_at,description,public_metrics"
TWEET_FIELDS = "id,text,author_id,created_at,public_metrics"

# Smallest max_results each endpoint accepts; smaller limits are sliced locally.
_MIN_PAGE_SEARCH_RECENT = 10
_MIN_PAGE_USER_TWEETS = 5


class XClient:
    """Thin typed wrapper over the X API v2 REST endpoints."""

    def __init__(
        self,
        bearer_token: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.max_text_length = max_text_length
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {bearer_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "XClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    # ── Transport ────────────────────────────────────────────────────────────

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET path and return the decoded JSON object, raising UpstreamError on failure."""
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            _log.warning("X API request to %s failed: %s", path, exc)
            raise UpstreamHttpError(None, f"request failed: {exc}") from exc

        text = response.text
        payload: Any = None
        if text:
            try:
                payload = response.json()
            except ValueError:
                if response.is_success:
                    raise UpstreamMalformedBody(response.status_code, text) from None

        if not response.is_success:
            _log.warning("X API %s returned HTTP %s", path, response.status_code)
            raise UpstreamHttpError(response.status_code, extract_error_message(payload, text))

        if not isinstance(payload, dict):
            raise UpstreamMalformedBody(response.status_code, text)
        return payload

    @staticmethod
    def _raise_reported(payload: dict[str, Any]) -> None:
        # List endpoints omit "data" on empty results; errors without data is a failure.
        if "data" not in payload and payload.get("errors"):
            raise UpstreamReportedError(extract_error_message(payload, ""), status=200)

    # ── Accounts ─────────────────────────────────────────────────────────────

    async def get_authenticated_profile(self) -> AccountSummary:
        payload = await self._get("/users/me", {"user.fields": USER_FIELDS})
        data = payload.get("data")
        if not data:
            raise NotFoundError(
                f"Authenticated profile not found: {extract_error_message(payload, 'no data')}"
            )
        return normalize_account(data)

    async def get_account_by_handle(self, handle: str) -> AccountSummary:
        handle = handle.lstrip("@")
        payload = await self._get(
            f"/users/by/username/{urllib.parse.quote(handle, safe='')}",
            {"user.fields": USER_FIELDS},
        )
        data = payload.get("data")
        if not data or not data.get("id"):
            raise NotFoundError(f"User @{handle} not found")
        return normalize_account(data)

    async def search_accounts(self, query: str, limit: int) -> list[AccountSummary]:
        payload = await self._get(
            "/users/search",
            {"query": query, "max_results": limit, "user.fields": USER_FIELDS},
        )
        self._raise_reported(payload)
        return [normalize_account(u) for u in payload.get("data") or []][:limit]

    # ── Posts ────────────────────────────────────────────────────────────────

    async def search_recent_posts(self, query: str, limit: int) -> list[PostSummary]:
        payload = await self._get(
            "/tweets/search/recent",
            {
                "query": query,
                "max_results": max(limit, _MIN_PAGE_SEARCH_RECENT),
                "tweet.fields": TWEET_FIELDS,
                "expansions": "author_id",
                "user.fields": USER_FIELDS,
            },
        )
        self._raise_reported(payload)
        return normalize_posts(payload, self.max_text_length)[:limit]

    async def get_account_posts(self, account_id: str, limit: int) -> list[PostSummary]:
        payload = await self._get(
            f"/users/{urllib.parse.quote(account_id, safe='')}/tweets",
            {
                "max_results": max(limit, _MIN_PAGE_USER_TWEETS),
                "tweet.fields": TWEET_FIELDS,
                "expansions": "author_id",
                "user.fields": USER_FIELDS,
            },
        )
        self._raise_reported(payload)
        return normalize_posts(payload, self.max_text_length)[:limit]

    async def get_post_by_id(self, post_id: str) -> PostSummary:
        payload = await self._get(
            f"/tweets/{urllib.parse.quote(post_id, safe='')}",
            {
                "tweet.fields": TWEET_FIELDS,
                "expansions": "author_id",
                "user.fields": USER_FIELDS,
            },
        )
        data = payload.get("data")
        if not data:
            raise NotFoundError(f"Tweet {post_id} not found")
        return normalize_post(data, index_authors(payload), self.max_text_length)
