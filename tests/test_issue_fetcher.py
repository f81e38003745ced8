from __future__ import annotations

import httpx
import pytest

from issue_monitor.config import Target
from issue_monitor.github.issue_fetcher import IssueFetcher, IssueFetchError
from issue_monitor.state import SeenIssueTracker

from conftest import API_BASE, START, FakeServices, issue_json


TARGET = Target(owner="acme", repository="widgets", filters={"labels": "help wanted", "assignee": "none"})


@pytest.mark.asyncio
async def test_query_params_and_headers(services: FakeServices) -> None:
    services.repos["acme/widgets"] = []
    async with services.client() as client:
        fetcher = IssueFetcher(client, token="gh-token", api_base_url=API_BASE + "/")
        await fetcher.fetch_new_issues(TARGET, START, SeenIssueTracker())

    assert len(services.github_requests) == 1
    req = services.github_requests[0]
    assert str(req.url).startswith(f"{API_BASE}/repos/acme/widgets/issues?")
    assert req.url.params["state"] == "open"
    assert req.url.params["since"] == "2026-03-01T12:00:00Z"
    assert req.url.params["labels"] == "help wanted"
    assert req.url.params["assignee"] == "none"
    assert req.method == "GET"
    assert req.headers["Authorization"] == "Bearer gh-token"
    assert req.headers["Cache-Control"] == "no-cache"
    assert req.headers["Pragma"] == "no-cache"


@pytest.mark.asyncio
async def test_no_token_omits_authorization(services: FakeServices) -> None:
    services.repos["acme/widgets"] = []
    async with services.client() as client:
        fetcher = IssueFetcher(client, token=None, api_base_url=API_BASE)
        await fetcher.fetch_issues(TARGET, START)

    assert "Authorization" not in services.github_requests[0].headers


@pytest.mark.asyncio
async def test_pull_requests_and_seen_issues_are_dropped_in_source_order(services: FakeServices) -> None:
    services.repos["acme/widgets"] = [
        issue_json(3),
        issue_json(1, pull_request=True),
        issue_json(2),
        issue_json(4),
    ]
    tracker = SeenIssueTracker()
    tracker.mark_seen(4)

    async with services.client() as client:
        fetcher = IssueFetcher(client, token="t", api_base_url=API_BASE)
        issues = await fetcher.fetch_new_issues(TARGET, START, tracker)

    assert [i.id for i in issues] == [3, 2]


@pytest.mark.asyncio
async def test_issue_fields_are_parsed(services: FakeServices) -> None:
    services.repos["acme/widgets"] = [issue_json(7, title="Crash on save", labels=["bug", "good first issue"])]
    async with services.client() as client:
        fetcher = IssueFetcher(client, token="t", api_base_url=API_BASE)
        (issue,) = await fetcher.fetch_issues(TARGET, START)

    assert issue.title == "Crash on save"
    assert issue.labels == ("bug", "good first issue")
    assert issue.created_at == START
    assert issue.update_gap_seconds == 5.0
    assert issue.is_pull_request is False


@pytest.mark.asyncio
@pytest.mark.parametrize("status, not_found", [(404, True), (500, False), (403, False)])
async def test_http_errors_raise_fetch_error(services: FakeServices, status: int, not_found: bool) -> None:
    services.repos["acme/widgets"] = status
    async with services.client() as client:
        fetcher = IssueFetcher(client, token="t", api_base_url=API_BASE)
        with pytest.raises(IssueFetchError) as excinfo:
            await fetcher.fetch_new_issues(TARGET, START, SeenIssueTracker())

    err = excinfo.value
    assert err.status_code == status
    assert err.not_found is not_found
    assert str(err).startswith("Error checking acme/widgets:")


@pytest.mark.asyncio
async def test_network_error_has_no_status(services: FakeServices) -> None:
    services.repos["acme/widgets"] = httpx.ConnectError("connection refused")
    async with services.client() as client:
        fetcher = IssueFetcher(client, token="t", api_base_url=API_BASE)
        with pytest.raises(IssueFetchError) as excinfo:
            await fetcher.fetch_issues(TARGET, START)

    assert excinfo.value.status_code is None
    assert excinfo.value.not_found is False
    assert "ConnectError" in str(excinfo.value)


@pytest.mark.asyncio
async def test_non_list_payload_is_an_error(services: FakeServices) -> None:
    services.repos["acme/widgets"] = {"message": "weird"}
    async with services.client() as client:
        fetcher = IssueFetcher(client, token="t", api_base_url=API_BASE)
        with pytest.raises(IssueFetchError):
            await fetcher.fetch_issues(TARGET, START)
