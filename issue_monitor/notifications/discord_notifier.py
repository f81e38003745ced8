"""Discord webhook notifications for issue and system alerts."""

from datetime import datetime, timezone
from typing import Any, Optional

import httpx
import structlog

from ..config import Target
from ..models import Issue, IssueKind, Severity


logger = structlog.get_logger(__name__)

BRAND_NEW_COLOR = 5763719  # green
UPDATED_COLOR = 15105570  # orange
NO_LABELS_PLACEHOLDER = "None"


def classify_issue(issue: Issue, fresh_window_seconds: int = 120) -> IssueKind:
    """Brand new if the issue was last updated within the window after creation."""
    if issue.update_gap_seconds < fresh_window_seconds:
        return IssueKind.BRAND_NEW
    return IssueKind.UPDATED


class DiscordNotifier:
    """Handles Discord notifications for issue and system alerts.

    Every send returns an ``(ok, response)`` tuple and never raises, so a
    broken webhook cannot take the scan loop down with it.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        webhook_url: Optional[str] = None,
        username: str = "GSoC Hunter",
        footer: str = "Go solve it!",
        fresh_window_seconds: int = 120,
    ):
        """Initialize Discord notifier.

        Args:
            client: Shared HTTP client
            webhook_url: Discord webhook URL, alerts are skipped when empty
            username: Username override shown on issue alerts
            footer: Footer text shown on issue alerts
            fresh_window_seconds: Creation-to-update gap under which an issue is brand new
        """
        self.client = client
        self.webhook_url = webhook_url
        self.username = username
        self.footer = footer
        self.fresh_window_seconds = fresh_window_seconds

        if self.webhook_url:
            logger.info("Discord notifier initialized")
        else:
            logger.warning("Discord webhook URL not configured")

    def build_issue_payload(self, issue: Issue, target: Target) -> dict[str, Any]:
        """Format one issue alert."""
        kind = classify_issue(issue, self.fresh_window_seconds)
        if kind is IssueKind.BRAND_NEW:
            title = f"🆕 New Issue: {target.repository}"
            color = BRAND_NEW_COLOR
        else:
            title = f"🏷️ Updated Issue: {target.repository}"
            color = UPDATED_COLOR

        labels = ", ".join(issue.labels) if issue.labels else NO_LABELS_PLACEHOLDER

        return {
            "username": self.username,
            "embeds": [
                {
                    "title": title,
                    "description": f"**{issue.title}**\n[Click to View]({issue.html_url})",
                    "color": color,
                    "fields": [{"name": "Labels", "value": labels, "inline": True}],
                    "footer": {"text": self.footer},
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            ],
        }

    def build_system_payload(self, message: str, severity: Severity = Severity.INFO) -> dict[str, Any]:
        """Format a lifecycle or error notification."""
        return {
            "embeds": [
                {
                    "title": f"🤖 System Log: {severity.value}",
                    "description": message,
                    "color": severity.color,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            ]
        }

    async def send_issue_alert(self, issue: Issue, target: Target) -> tuple[bool, dict]:
        """Send one alert for a newly discovered issue."""
        payload = self.build_issue_payload(issue, target)
        return await self._post(payload)

    async def send_system_alert(self, message: str, severity: Severity = Severity.INFO) -> tuple[bool, dict]:
        """Send a system notification tagged with ``severity``."""
        payload = self.build_system_payload(message, severity)
        return await self._post(payload)

    async def send_startup(self, target_count: int) -> tuple[bool, dict]:
        return await self.send_system_alert(
            f"🚀 Bot started! Monitoring {target_count} repos.", Severity.SUCCESS
        )

    async def send_heartbeat(self) -> tuple[bool, dict]:
        return await self.send_system_alert("❤️ I am still running properly.", Severity.INFO)

    async def send_error(self, message: str) -> tuple[bool, dict]:
        return await self.send_system_alert(message, Severity.ERROR)

    async def _post(self, payload: dict[str, Any]) -> tuple[bool, dict]:
        if not self._is_configured():
            logger.warning("Discord not configured, skipping notification")
            return False, {"ok": False, "error": "webhook not configured"}

        try:
            resp = await self.client.post(self.webhook_url, json=payload)
        except Exception as e:
            msg = self._redact(f"{type(e).__name__}: {e}")
            return False, {"ok": False, "error": msg}

        if resp.status_code >= 400:
            body = self._redact(resp.text[:300])
            return False, {"ok": False, "status_code": resp.status_code, "error": body}

        return True, {"ok": True, "status_code": resp.status_code}

    def _redact(self, text: str) -> str:
        # The webhook URL embeds its own secret token.
        if self.webhook_url:
            text = text.replace(self.webhook_url, "<redacted>")
        return text

    def _is_configured(self) -> bool:
        """Check if the webhook is configured."""
        return bool(self.webhook_url)
