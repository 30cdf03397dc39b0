"""Configuration management for SyncReeper."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from .errors import ConfigurationError
from .platform import normalize_path, validate_git_availability

DEFAULT_REPOS_PATH = "/srv/repos"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
STIGNORE_FILE_NAME = ".stignore"


@dataclass
class Config:
    """Configuration for a SyncReeper sync cycle with validation and defaults."""

    # GitHub access
    github_token: str
    github_username: str
    github_api_url: str = DEFAULT_GITHUB_API_URL
    request_timeout: float = 30.0

    # Storage
    repos_path: Path = field(default_factory=lambda: Path(DEFAULT_REPOS_PATH))

    # Run lock
    lock_stale_timeout: float = 600.0

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.github_token:
            raise ConfigurationError("GITHUB_TOKEN environment variable is required")
        if not self.github_username:
            raise ConfigurationError("GITHUB_USERNAME environment variable is required")

        self.repos_path = normalize_path(self.repos_path)

        self.log_level = self.log_level.upper()
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            raise ConfigurationError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")

        if self.lock_stale_timeout <= 0:
            raise ConfigurationError("lock_stale_timeout must be positive")

        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")

        self.github_api_url = self.github_api_url.rstrip("/")

    @property
    def lock_dir(self) -> Path:
        """Directory holding the run lock file."""
        return self.repos_path

    @property
    def stignore_path(self) -> Path:
        """Shared Syncthing ignore file at the root of the synced folder."""
        return self.repos_path / STIGNORE_FILE_NAME


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_configuration() -> Config:
    """Load configuration from environment variables (and a local .env file, if present)."""
    load_dotenv()

    return Config(
        github_token=os.getenv("GITHUB_TOKEN", ""),
        github_username=os.getenv("GITHUB_USERNAME", ""),
        repos_path=Path(os.getenv("REPOS_PATH") or DEFAULT_REPOS_PATH),
        log_level=os.getenv("SYNCREEPER_LOG_LEVEL", "INFO"),
        lock_stale_timeout=_read_float("SYNCREEPER_LOCK_STALE_TIMEOUT", 600.0),
        github_api_url=os.getenv("SYNCREEPER_GITHUB_API_URL") or DEFAULT_GITHUB_API_URL,
        request_timeout=_read_float("SYNCREEPER_REQUEST_TIMEOUT", 30.0),
    )


def validate_configuration(config: Config) -> List[str]:
    """Validate configuration against the environment and return any errors or warnings."""
    logger = logging.getLogger('syncreeper.config')
    errors = []

    # Checked with os.access; nothing is written into the Syncthing-shared directory
    try:
        config.repos_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        errors.append(f"ERROR: Cannot access repos directory {config.repos_path}: {e}")
    else:
        if not os.access(config.repos_path, os.W_OK | os.X_OK):
            errors.append(f"ERROR: No write permission for repos directory: {config.repos_path}")

    if not config.github_api_url.startswith(("http://", "https://")):
        errors.append(f"ERROR: GitHub API URL must be http(s): {config.github_api_url}")
    elif config.github_api_url.startswith("http://"):
        errors.append(f"WARNING: GitHub API URL is not using HTTPS: {config.github_api_url}")

    git_available, git_error = validate_git_availability()
    if not git_available:
        errors.append(f"ERROR: {git_error}")

    if not config.stignore_path.exists():
        errors.append(f"WARNING: Syncthing ignore file not found: {config.stignore_path}")

    for message in errors:
        logger.debug(message)

    return errors
