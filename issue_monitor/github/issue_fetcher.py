"""GitHub issue queries for a single monitored target."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import httpx
import structlog

from ..config import Target
from ..models import Issue, format_github_datetime
from ..state import SeenIssueTracker


logger = structlog.get_logger(__name__)

# Ask GitHub (and anything in between) for fresh data on every poll.
CACHE_BUSTING_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class IssueFetchError(Exception):
    """Raised when the issue query for a target fails."""

    def __init__(self, target: Target, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.target = target
        self.message = message
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.status_code == 404

    def __str__(self) -> str:
        return f"Error checking {self.target.full_name}: {self.message}"


class IssueFetcher:
    """Fetches open issues changed since the watermark for one target."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str | None = None,
        api_base_url: str = "https://api.github.com",
    ):
        self.client = client
        self.token = token
        self.api_base_url = api_base_url.rstrip("/")

        if not self.token:
            logger.warning("GitHub token not configured, using unauthenticated requests")

    def build_request_params(self, target: Target, since: datetime) -> dict[str, str]:
        params = {"state": "open", "since": format_github_datetime(since)}
        params.update(target.filters)
        return params

    def build_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json", **CACHE_BUSTING_HEADERS}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch_issues(self, target: Target, since: datetime) -> list[Issue]:
        """Run one query and return every issue record, pull requests included."""
        url = f"{self.api_base_url}/repos/{target.owner}/{target.repository}/issues"

        try:
            resp = await self.client.get(
                url,
                params=self.build_request_params(target, since),
                headers=self.build_headers(),
            )
            resp.raise_for_status()
            payload: Any = resp.json()
        except httpx.HTTPStatusError as e:
            raise IssueFetchError(
                target,
                f"HTTP {e.response.status_code} from issue tracker",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise IssueFetchError(target, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise IssueFetchError(target, f"Invalid JSON response: {e}") from e

        if not isinstance(payload, list):
            raise IssueFetchError(target, "Unexpected response payload (expected a list)")

        try:
            return [Issue.from_api(item) for item in payload]
        except (KeyError, TypeError, ValueError) as e:
            raise IssueFetchError(target, f"Malformed issue record: {e}") from e

    async def fetch_new_issues(
        self, target: Target, since: datetime, tracker: SeenIssueTracker
    ) -> list[Issue]:
        """Return the issues for ``target`` that should be alerted on this cycle.

        Pull requests are dropped first, then anything already in ``tracker``.
        The source order is kept.
        """
        issues = await self.fetch_issues(target, since)
        not_pulls = [issue for issue in issues if not issue.is_pull_request]
        new_issues = [issue for issue in not_pulls if not tracker.has_seen(issue.id)]

        logger.debug(
            "Fetched issues",
            target=target.full_name,
            fetched=len(issues),
            pull_requests=len(issues) - len(not_pulls),
            new=len(new_issues),
        )
        return new_issues
