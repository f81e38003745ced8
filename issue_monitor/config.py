"""Configuration management for the issue monitor."""

import os
from typing import Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class Target(BaseModel):
    """One monitored repository plus the issue filters sent with each query."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="Repository owner (user or organisation)")
    repository: str = Field(description="Repository name")
    filters: Dict[str, str] = Field(default_factory=dict, description="Extra issue query parameters")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"


DEFAULT_TARGETS = [
    Target(owner="oaiedu", repository="devops-opensource-agent"),
    Target(owner="oaiedu", repository="assessment-platform-admin"),
    Target(owner="oaiedu", repository="dora-quizz"),
    Target(owner="PalisadoesFoundation", repository="talawa-admin", filters={"assignee": "none"}),
]


class MonitorConfig(BaseModel):
    """Main configuration for the issue monitor."""

    # Credentials and endpoints
    github_token: Optional[str] = Field(default=None, description="GitHub API token")
    discord_webhook_url: Optional[str] = Field(default=None, description="Discord webhook URL for alerts")
    api_base_url: str = Field(default="https://api.github.com", description="Issue tracker API base URL")
    port: int = Field(default=3000, description="Port for the liveness endpoint")

    # Scheduling settings
    poll_interval_seconds: int = Field(default=60, gt=0, description="Seconds between scan cycles")
    heartbeat_interval_seconds: int = Field(default=3600, gt=0, description="Seconds between heartbeat alerts")

    # Detection settings
    seen_capacity: int = Field(default=5000, gt=0, description="Seen-issue set size that triggers a reset")
    fresh_window_seconds: int = Field(default=120, ge=0, description="Max creation-to-update gap for a brand new issue")
    http_timeout_seconds: float = Field(default=15.0, gt=0, description="HTTP client timeout")

    # Alert presentation
    bot_username: str = Field(default="GSoC Hunter", description="Webhook username override")
    alert_footer: str = Field(default="Go solve it!", description="Footer text on issue alerts")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(default="bot.log", description="Append-only log file, empty to disable")

    targets: list[Target] = Field(default_factory=lambda: list(DEFAULT_TARGETS))


def load_config(config_path: Optional[str] = None) -> MonitorConfig:
    """Load configuration from file or environment variables."""
    load_dotenv(find_dotenv(usecwd=True), override=False)

    if config_path is None:
        config_path = os.getenv("MONITOR_CONFIG", "config/monitor.yaml")

    config_data = {}

    # Load from file if exists
    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

    # Override with environment variables
    env_overrides = {
        "github_token": os.getenv("GITHUB_TOKEN"),
        "discord_webhook_url": os.getenv("DISCORD_WEBHOOK_URL"),
        "api_base_url": os.getenv("GITHUB_API_URL"),
        "port": os.getenv("PORT"),
        "log_level": os.getenv("LOG_LEVEL"),
        "log_file": os.getenv("LOG_FILE"),
        "poll_interval_seconds": os.getenv("POLL_INTERVAL_SECONDS"),
        "heartbeat_interval_seconds": os.getenv("HEARTBEAT_INTERVAL_SECONDS"),
    }

    # Filter out None values and convert types
    for key, value in env_overrides.items():
        if value is not None:
            if key in ["port", "poll_interval_seconds", "heartbeat_interval_seconds"]:
                value = int(value)
            config_data[key] = value

    return MonitorConfig(**config_data)


def get_config() -> MonitorConfig:
    """Get the configuration instance for this process."""
    return load_config()
