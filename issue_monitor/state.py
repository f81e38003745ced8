"""In-memory monitor state: the seen-issue set and the scan watermark."""

from datetime import datetime, timezone
from typing import Callable, Optional

import structlog


logger = structlog.get_logger(__name__)

DEFAULT_SEEN_CAPACITY = 5000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SeenIssueTracker:
    """Remembers which issues have already been alerted on.

    The set is cleared entirely once it grows past ``capacity``. Issues that
    are still open and touched again after a reset will be alerted on again;
    there is no persistent store to prevent that.
    """

    def __init__(self, capacity: int = DEFAULT_SEEN_CAPACITY):
        self.capacity = capacity
        self._seen: set[int] = set()

    def has_seen(self, issue_id: int) -> bool:
        return issue_id in self._seen

    def mark_seen(self, issue_id: int) -> None:
        self._seen.add(issue_id)

    def maybe_reset(self) -> bool:
        """Clear the set if it has grown past capacity.

        Returns:
            True if the set was cleared
        """
        size = len(self._seen)
        if size <= self.capacity:
            return False

        self._seen.clear()
        logger.warning("Seen-issue set cleared", cleared=size, capacity=self.capacity)
        return True

    def __len__(self) -> int:
        return len(self._seen)


class MonitorState:
    """Process-wide scan state passed into the scan cycle controller."""

    def __init__(
        self,
        tracker: Optional[SeenIssueTracker] = None,
        clock: Callable[[], datetime] = utc_now,
        last_checked: Optional[datetime] = None,
    ):
        self.tracker = tracker if tracker is not None else SeenIssueTracker()
        self.clock = clock
        # Start from "now" so no historical backlog is surfaced on the first cycle.
        self.last_checked = last_checked or clock()

    def advance_watermark(self, scan_started_at: datetime) -> datetime:
        """Move the watermark to ``scan_started_at``, never backwards."""
        if scan_started_at >= self.last_checked:
            self.last_checked = scan_started_at
        else:
            logger.warning(
                "Ignoring watermark regression",
                current=self.last_checked.isoformat(),
                proposed=scan_started_at.isoformat(),
            )
        return self.last_checked
