"""Global configuration — XDG paths, config file, env vars, defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "codesentry"
    return Path.home() / ".local" / "share" / "codesentry"


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "codesentry"
    return Path.home() / ".config" / "codesentry"


def _env_number(name: str, cast, default):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class CodeSentryConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    config_dir: Path = field(default_factory=_default_config_dir)
    api_base_url: str = "http://127.0.0.1:8080"
    request_timeout: float = 30.0
    status_timeout: float = 2.5
    poll_interval: float = 3.0
    max_attempts: int = 10
    web_host: str = "127.0.0.1"  # Loopback only, never 0.0.0.0
    web_port: int = 8471
    user_id: int | None = None
    verbose: bool = False

    @property
    def db_path(self) -> Path:
        return self.data_dir / "codesentry.db"

    @property
    def token_path(self) -> Path:
        return self.data_dir / "token"

    @classmethod
    def load(cls) -> CodeSentryConfig:
        """Load config.yaml from the config dir, then apply env overrides."""
        config = cls()

        config_file = config.config_dir / "config.yaml"
        if config_file.is_file():
            config._apply_file(config_file)

        env_url = os.environ.get("CODESENTRY_API_URL")
        if env_url:
            config.api_base_url = env_url

        config.poll_interval = _env_number(
            "CODESENTRY_POLL_INTERVAL", float, config.poll_interval
        )
        config.max_attempts = _env_number(
            "CODESENTRY_MAX_ATTEMPTS", int, config.max_attempts
        )
        config.web_port = _env_number("CODESENTRY_WEB_PORT", int, config.web_port)
        config.user_id = _env_number("CODESENTRY_USER_ID", int, config.user_id)

        config.validate()
        config.clamp_status_timeout()
        return config

    def validate(self) -> None:
        """Raise ValueError if the poll budget cannot run."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")

    def clamp_status_timeout(self) -> None:
        """A status fetch must finish inside one poll interval."""
        if self.status_timeout >= self.poll_interval:
            self.status_timeout = self.poll_interval * 0.8
            logger.debug(
                "status_timeout clamped to %.2fs (poll interval %.2fs)",
                self.status_timeout,
                self.poll_interval,
            )

    def _apply_file(self, path: Path) -> None:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: config file must be a mapping")

        api = data.get("api", {})
        self.api_base_url = api.get("base_url", self.api_base_url)
        self.request_timeout = float(api.get("timeout", self.request_timeout))
        self.status_timeout = float(api.get("status_timeout", self.status_timeout))

        scan = data.get("scan", {})
        self.poll_interval = float(scan.get("poll_interval", self.poll_interval))
        self.max_attempts = int(scan.get("max_attempts", self.max_attempts))

        web = data.get("web", {})
        self.web_port = int(web.get("port", self.web_port))

        if "user_id" in data:
            self.user_id = int(data["user_id"])
