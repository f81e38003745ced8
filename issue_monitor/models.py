from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Severity(str, Enum):
    INFO = "INFO"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"

    @property
    def color(self) -> int:
        return SEVERITY_COLORS[self]


SEVERITY_COLORS = {
    Severity.INFO: 3447003,  # blue
    Severity.ERROR: 15548997,  # red
    Severity.SUCCESS: 5763719,  # green
}


class IssueKind(str, Enum):
    BRAND_NEW = "brand_new"
    UPDATED = "updated"


def parse_github_datetime(value: str) -> datetime:
    """Parse a GitHub timestamp such as ``2024-05-01T12:00:00Z`` into an aware UTC datetime."""
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_github_datetime(value: datetime) -> str:
    """Format a datetime the way the GitHub ``since`` parameter expects it."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Issue:
    id: int
    number: int
    title: str
    html_url: str
    created_at: datetime
    updated_at: datetime
    labels: tuple[str, ...] = field(default_factory=tuple)
    is_pull_request: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Issue":
        labels: list[str] = []
        for label in data.get("labels") or []:
            # The REST API returns label objects, but plain strings are accepted too.
            name = label.get("name") if isinstance(label, dict) else label
            if isinstance(name, str) and name:
                labels.append(name)
        return cls(
            id=int(data["id"]),
            number=int(data.get("number") or 0),
            title=str(data.get("title") or ""),
            html_url=str(data.get("html_url") or ""),
            created_at=parse_github_datetime(data["created_at"]),
            updated_at=parse_github_datetime(data.get("updated_at") or data["created_at"]),
            labels=tuple(labels),
            is_pull_request=data.get("pull_request") is not None,
        )

    @property
    def update_gap_seconds(self) -> float:
        return (self.updated_at - self.created_at).total_seconds()
