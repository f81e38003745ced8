"""Main entry point for the issue monitor."""

import argparse
import asyncio
import json
from datetime import timedelta

import structlog
import uvicorn

from issue_monitor.app import create_app
from issue_monitor.config import MonitorConfig, load_config
from issue_monitor.logging_config import configure_logging
from issue_monitor.scheduler.coordinator import MonitorCoordinator
from issue_monitor.state import MonitorState, SeenIssueTracker, utc_now


logger = structlog.get_logger(__name__)

app = create_app()


async def run_once(config: MonitorConfig, since_minutes: int = 0) -> int:
    """Run a single scan cycle without the scheduler or the startup alert."""
    state = MonitorState(
        tracker=SeenIssueTracker(capacity=config.seen_capacity),
        last_checked=utc_now() - timedelta(minutes=since_minutes),
    )
    coordinator = MonitorCoordinator(config, state=state)
    try:
        report = await coordinator.controller.run_cycle()
    finally:
        await coordinator.stop()

    print(json.dumps(report.to_dict(), indent=2))
    return 1 if report.errors else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="GitHub issue monitor with Discord alerts")
    parser.add_argument("--config", default=None, help="Path to YAML config (default: $MONITOR_CONFIG)")
    parser.add_argument("--once", action="store_true", help="Run one scan cycle and exit")
    parser.add_argument(
        "--since-minutes",
        type=int,
        default=0,
        help="With --once, look back this many minutes instead of starting from now",
    )
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.log_level, config.log_file)

    if args.once:
        return asyncio.run(run_once(config, since_minutes=args.since_minutes))

    logger.info("Starting issue monitor web server", port=config.port)
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.port, log_level="info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
