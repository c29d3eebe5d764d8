from pydantic import BaseModel


class AccountMetrics(BaseModel):
    followers_count: int = 0
    following_count: int = 0
    tweet_count: int = 0
    listed_count: int = 0


class AccountSummary(BaseModel):
    id: str
    name: str
    username: str
    description: str | None = None
    created_at: str | None = None
    metrics: AccountMetrics | None = None
    url: str                            # https://x.com/<username>


class PostMetrics(BaseModel):
    like_count: int = 0
    reply_count: int = 0
    retweet_count: int = 0
    quote_count: int = 0


class PostSummary(BaseModel):
    id: str
    text: str                           # truncated to the configured display length
    author_id: str | None = None
    author: AccountSummary | None = None
    created_at: str | None = None
    metrics: PostMetrics | None = None
    url: str                            # permalink, "i" as handle when author unknown
