"""Scheduler module for the recurring monitor jobs."""

from .coordinator import MonitorCoordinator
from .job_scheduler import JobScheduler

__all__ = ["JobScheduler", "MonitorCoordinator"]
