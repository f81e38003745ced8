"""GitHub issue queries."""

from .issue_fetcher import IssueFetcher, IssueFetchError

__all__ = ["IssueFetcher", "IssueFetchError"]
