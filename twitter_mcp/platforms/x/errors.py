"""Error kinds raised by the X API client.

Every failure of an upstream call surfaces as one UpstreamError subclass so
tool handlers can format it without inspecting raw responses.
"""


class UpstreamError(Exception):
    """Base class for failures talking to the X API."""

    status: int | None = None

    @property
    def message(self) -> str:
        return str(self)


class UpstreamHttpError(UpstreamError):
    """Non-success HTTP status, or the request never got a response (status None)."""

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.detail = message
        prefix = f"HTTP {status}: " if status is not None else ""
        super().__init__(f"{prefix}{message}")

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429


class UpstreamMalformedBody(UpstreamError):
    """The response body was not valid JSON."""

    def __init__(self, status: int | None, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: non-JSON response: {body[:200]}")


class UpstreamReportedError(UpstreamError):
    """A 2xx envelope that carried errors and no data."""

    def __init__(self, detail: str, status: int | None = None) -> None:
        self.status = status
        self.detail = detail
        super().__init__(detail)


class NotFoundError(UpstreamError):
    """A single-record lookup returned no record."""
