"""Scan cycle: fetch every target once, dedupe, alert, advance the watermark."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Sequence

import structlog

from .config import Target
from .github.issue_fetcher import IssueFetcher, IssueFetchError
from .notifications.discord_notifier import DiscordNotifier
from .state import MonitorState


logger = structlog.get_logger(__name__)


@dataclass
class CycleReport:
    """Outcome of one scan cycle."""
    started_at: datetime
    new_issues: Dict[str, int] = field(default_factory=dict)
    alerts_sent: int = 0
    alerts_failed: int = 0
    errors: List[str] = field(default_factory=list)
    watermark: datetime | None = None

    @property
    def total_new(self) -> int:
        return sum(self.new_issues.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "new_issues": dict(self.new_issues),
            "total_new": self.total_new,
            "alerts_sent": self.alerts_sent,
            "alerts_failed": self.alerts_failed,
            "errors": list(self.errors),
            "watermark": self.watermark.isoformat() if self.watermark else None,
        }


class ScanCycleController:
    """Runs scan cycles over the target registry.

    Targets are processed one after another. Nothing inside a target's
    fetch/filter/alert sequence is shared with other scheduled jobs, so no
    locking is needed.
    """

    def __init__(
        self,
        targets: Sequence[Target],
        state: MonitorState,
        fetcher: IssueFetcher,
        notifier: DiscordNotifier,
    ):
        self.targets = list(targets)
        self.state = state
        self.fetcher = fetcher
        self.notifier = notifier
        self.last_report: CycleReport | None = None

    async def run_cycle(self) -> CycleReport:
        """Scan every target once."""
        # Captured before any fetch so issues created mid-cycle are picked up next time.
        scan_started_at = self.state.clock()
        since = self.state.last_checked
        report = CycleReport(started_at=scan_started_at)

        logger.info("🔄 Starting scan cycle", targets=len(self.targets), since=since.isoformat())

        for target in self.targets:
            await self._scan_target(target, since, report)

        report.watermark = self.state.advance_watermark(scan_started_at)
        self.last_report = report

        logger.info(
            "Scan cycle completed",
            new_issues=report.total_new,
            alerts_sent=report.alerts_sent,
            alerts_failed=report.alerts_failed,
            errors=len(report.errors),
        )
        return report

    async def _scan_target(self, target: Target, since: datetime, report: CycleReport) -> None:
        tracker = self.state.tracker

        try:
            new_issues = await self.fetcher.fetch_new_issues(target, since, tracker)
        except IssueFetchError as e:
            await self._handle_fetch_error(e, report)
            return

        if not new_issues:
            return

        report.new_issues[target.full_name] = len(new_issues)
        logger.info(f"🚨 Found {len(new_issues)} issues in {target.repository}", target=target.full_name)

        for issue in new_issues:
            tracker.mark_seen(issue.id)

            ok, resp = await self.notifier.send_issue_alert(issue, target)
            if ok:
                report.alerts_sent += 1
            else:
                # Delivery failures are not retried; the issue stays marked as seen.
                report.alerts_failed += 1
                logger.error(
                    "Failed to send issue alert",
                    target=target.full_name,
                    issue=issue.number,
                    error=resp.get("error"),
                )

            tracker.maybe_reset()

    async def _handle_fetch_error(self, error: IssueFetchError, report: CycleReport) -> None:
        error_msg = str(error)
        report.errors.append(error_msg)
        logger.error(error_msg, target=error.target.full_name, status_code=error.status_code)

        # A missing repository stays missing; escalating it every minute is just noise.
        if error.not_found:
            return

        ok, resp = await self.notifier.send_error(error_msg)
        if not ok:
            logger.warning("Failed to send error alert", error=resp.get("error"))
