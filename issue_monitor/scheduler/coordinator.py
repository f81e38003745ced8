"""Wires the monitor together and owns its recurring jobs."""

from typing import Any, Dict, Optional

import httpx
import structlog

from ..config import MonitorConfig, get_config
from ..github.issue_fetcher import IssueFetcher
from ..notifications.discord_notifier import DiscordNotifier
from ..scan_cycle import CycleReport, ScanCycleController
from ..state import MonitorState, SeenIssueTracker
from .job_scheduler import JobScheduler


logger = structlog.get_logger(__name__)

POLL_JOB_ID = "issue_scan"
HEARTBEAT_JOB_ID = "heartbeat"


class MonitorCoordinator:
    """Coordinates the poll and heartbeat jobs.

    The two jobs share one event loop and may interleave at any await. The
    heartbeat touches nothing in ``MonitorState``; keep it that way or add a
    lock.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        state: Optional[MonitorState] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        scheduler: Optional[JobScheduler] = None,
    ):
        self.config = config or get_config()
        if state is None:
            state = MonitorState(tracker=SeenIssueTracker(capacity=self.config.seen_capacity))
        self.state = state
        self.http_client = http_client or httpx.AsyncClient(timeout=self.config.http_timeout_seconds)
        self._owns_client = http_client is None
        self.scheduler = scheduler or JobScheduler()

        self.fetcher = IssueFetcher(
            self.http_client,
            token=self.config.github_token,
            api_base_url=self.config.api_base_url,
        )
        self.notifier = DiscordNotifier(
            self.http_client,
            webhook_url=self.config.discord_webhook_url,
            username=self.config.bot_username,
            footer=self.config.alert_footer,
            fresh_window_seconds=self.config.fresh_window_seconds,
        )
        self.controller = ScanCycleController(
            targets=self.config.targets,
            state=self.state,
            fetcher=self.fetcher,
            notifier=self.notifier,
        )

    async def start(self):
        """Announce startup and start the poll and heartbeat jobs."""
        target_count = len(self.config.targets)
        logger.info(f"🚀 Bot started! Monitoring {target_count} repos.")

        ok, resp = await self.notifier.send_startup(target_count)
        if not ok:
            logger.warning("Failed to send startup alert", error=resp.get("error"))

        await self.scheduler.start()
        self.scheduler.add_interval_job(
            job_id=POLL_JOB_ID,
            func=self.run_scan,
            seconds=self.config.poll_interval_seconds,
            run_immediately=True,
            description="Scan target repositories for new issues",
        )
        self.scheduler.add_interval_job(
            job_id=HEARTBEAT_JOB_ID,
            func=self.send_heartbeat,
            seconds=self.config.heartbeat_interval_seconds,
            description="Send heartbeat alert",
        )
        logger.info("Monitor coordinator started",
                   poll_interval=self.config.poll_interval_seconds,
                   heartbeat_interval=self.config.heartbeat_interval_seconds)

    async def stop(self):
        """Stop the scheduler and release the HTTP client."""
        await self.scheduler.stop()
        if self._owns_client:
            await self.http_client.aclose()
        logger.info("Monitor coordinator stopped")

    async def run_scan(self) -> Optional[CycleReport]:
        """Scheduled entry point for one scan cycle."""
        try:
            return await self.controller.run_cycle()
        except Exception as e:
            # Keep the job firing; the next cycle is the retry.
            logger.exception("Scan cycle crashed", error=str(e))
            return None

    async def send_heartbeat(self) -> bool:
        ok, resp = await self.notifier.send_heartbeat()
        if ok:
            logger.info("Heartbeat sent")
        else:
            logger.warning("Failed to send heartbeat", error=resp.get("error"))
        return ok

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of monitor state for the status endpoint."""
        last_report = self.controller.last_report
        return {
            "watermark": self.state.last_checked.isoformat(),
            "seen_issues": len(self.state.tracker),
            "seen_capacity": self.state.tracker.capacity,
            "targets": [
                {"repo": t.full_name, "filters": dict(t.filters)} for t in self.config.targets
            ],
            "last_cycle": last_report.to_dict() if last_report else None,
            "scheduler": self.scheduler.get_scheduler_status(),
            "jobs": self.scheduler.list_jobs(),
        }
