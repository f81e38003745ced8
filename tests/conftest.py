from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from issue_monitor.config import MonitorConfig, Target


API_BASE = "https://api.github.test"
WEBHOOK_URL = "https://discord.test/api/webhooks/123/secret-token"
START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


def issue_json(
    issue_id: int,
    *,
    title: str | None = None,
    created_at: datetime = START,
    updated_after: float = 5.0,
    labels: list[str] | None = None,
    pull_request: bool = False,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": issue_id,
        "number": issue_id % 1000,
        "title": title or f"Issue {issue_id}",
        "html_url": f"https://github.com/acme/widgets/issues/{issue_id % 1000}",
        "created_at": created_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "updated_at": (created_at + timedelta(seconds=updated_after)).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "labels": [{"name": name} for name in (labels or [])],
    }
    if pull_request:
        data["pull_request"] = {"url": "https://api.github.com/repos/acme/widgets/pulls/1"}
    return data


class FakeServices:
    """Routes GitHub issue queries and webhook posts for a MockTransport."""

    def __init__(self) -> None:
        # repo full name -> list of issue dicts, or an int status code to fail with
        self.repos: dict[str, Any] = {}
        self.github_requests: list[httpx.Request] = []
        self.webhook_payloads: list[dict[str, Any]] = []
        self.webhook_status = 204
        self.webhook_error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "discord.test":
            if self.webhook_error is not None:
                raise self.webhook_error
            self.webhook_payloads.append(json.loads(request.content))
            return httpx.Response(self.webhook_status, text="" if self.webhook_status < 400 else "rejected")

        self.github_requests.append(request)
        parts = request.url.path.strip("/").split("/")
        # /repos/{owner}/{repo}/issues
        repo = f"{parts[1]}/{parts[2]}"
        result = self.repos.get(repo, 404)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, int):
            return httpx.Response(result, json={"message": "error"})
        return httpx.Response(200, json=result)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def system_alerts(self, severity: str) -> list[dict[str, Any]]:
        title = f"🤖 System Log: {severity}"
        return [p for p in self.webhook_payloads if p["embeds"][0]["title"] == title]

    def issue_alerts(self) -> list[dict[str, Any]]:
        return [p for p in self.webhook_payloads if "username" in p]


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_config() -> Callable[..., MonitorConfig]:
    def _make(**overrides: Any) -> MonitorConfig:
        data: dict[str, Any] = {
            "github_token": "gh-token",
            "discord_webhook_url": WEBHOOK_URL,
            "api_base_url": API_BASE,
            "log_file": None,
            "targets": [Target(owner="acme", repository="widgets")],
        }
        data.update(overrides)
        return MonitorConfig(**data)

    return _make
