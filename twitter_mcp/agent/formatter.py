import json
from typing import Any

from mcp import types
from pydantic import BaseModel, ValidationError

from twitter_mcp.platforms.x.errors import UpstreamError

RATE_LIMIT_MESSAGE = "Twitter API rate limit exceeded, try again later."
UNEXPECTED_MESSAGE = "An unexpected error occurred while contacting Twitter."


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def json_content(payload: Any) -> list[types.TextContent]:
    """Wrap a result payload as one pretty-printed JSON text block."""
    text = json.dumps(_to_jsonable(payload), indent=2, ensure_ascii=False)
    return [types.TextContent(type="text", text=text)]


def text_content(text: str) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=text)]


def format_validation_error(tool_name: str, error: ValidationError) -> str:
    """One line per failed field, e.g. "limit: Input should be less than or equal to 50"."""
    problems = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        problems.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return f"Invalid arguments for {tool_name}: " + "; ".join(problems)


def format_upstream_error(error: BaseException) -> str:
    """Turn a client failure into the text shown to the model."""
    if isinstance(error, UpstreamError):
        if error.status == 429:
            return RATE_LIMIT_MESSAGE
        return f"Twitter API error: {error.message or 'Unknown error'}"
    return UNEXPECTED_MESSAGE
