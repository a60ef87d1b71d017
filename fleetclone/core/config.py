"""
Configuration management for fleetclone.

Provides centralized configuration for the directory client, the
clone tasks and the scheduler with sensible defaults and validation.
"""

import os
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from fleetclone.core.exceptions import ConfigurationError


class CloneMethod(Enum):
    """Transport protocol used for cloning."""
    HTTPS = "https"
    SSH = "ssh"

    @classmethod
    def parse(cls, value) -> "CloneMethod":
        """Parse a clone method name, raising ConfigurationError if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown clone method: {value!r} (expected 'https' or 'ssh')",
                details={"clone_method": value},
            )


@dataclass
class DirectoryConfig:
    """Configuration for the remote project listing."""

    # Base URL of the hosting service
    base_url: str = "https://gitlab.com"

    # API token, sent as PRIVATE-TOKEN when set
    token: Optional[str] = None

    # Projects per page (GitLab caps this at 100)
    per_page: int = 100

    # Timeout for a single page request (seconds)
    request_timeout: int = 120

    verify_tls: bool = True


@dataclass
class CloneConfig:
    """Configuration for individual clone tasks."""

    clone_method: str = CloneMethod.HTTPS.value

    # Root directory under which path_with_namespace is placed
    root_dir: str = "./repos"

    @property
    def method(self) -> CloneMethod:
        return CloneMethod.parse(self.clone_method)

    @property
    def root_path(self) -> Path:
        return Path(self.root_dir).expanduser()


@dataclass
class SchedulerConfig:
    """Configuration for the bounded worker pool."""

    # Number of clones in flight at any time
    worker_count: int = 8


@dataclass
class FleetConfig:
    """Master configuration combining all component configurations."""

    directory: DirectoryConfig = field(default_factory=DirectoryConfig)
    clone: CloneConfig = field(default_factory=CloneConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    # Enable verbose logging
    verbose: bool = False

    def validate(self) -> None:
        """
        Validate the configuration before any work begins.

        Raises:
            ConfigurationError: If a setting is invalid.
        """
        CloneMethod.parse(self.clone.clone_method)

        if not isinstance(self.scheduler.worker_count, int) or self.scheduler.worker_count < 1:
            raise ConfigurationError(
                f"Worker count must be a positive integer, got {self.scheduler.worker_count!r}",
                details={"worker_count": self.scheduler.worker_count},
            )

        parsed = urlparse(self.directory.base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(
                f"Invalid base URL: {self.directory.base_url!r}",
                details={"base_url": self.directory.base_url},
            )

        if self.directory.per_page < 1:
            raise ConfigurationError(
                f"Page size must be positive, got {self.directory.per_page}",
                details={"per_page": self.directory.per_page},
            )


class Config:
    """
    Central configuration manager providing access to all settings.

    Supports loading from environment variables and configuration files.
    Only the command-line layer reads it; components get their slice
    passed in explicitly.
    """

    _instance: Optional["Config"] = None
    _config: FleetConfig = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config = FleetConfig()
        return cls._instance

    @classmethod
    def get(cls) -> FleetConfig:
        """Get the current fleet configuration."""
        if cls._instance is None:
            cls()
        return cls._instance._config

    @classmethod
    def reset(cls) -> FleetConfig:
        """Discard the current configuration and start from defaults."""
        instance = cls()
        instance._config = FleetConfig()
        return instance._config

    @classmethod
    def load_from_file(cls, config_path: str) -> FleetConfig:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file.

        Returns:
            Loaded FleetConfig instance.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                details={"path": str(config_path)},
            )

        try:
            with open(config_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Configuration file is not valid JSON: {e}",
                details={"path": str(config_path)},
            )

        instance = cls()
        instance._config = cls._dict_to_config(data)
        return instance._config

    @classmethod
    def load_from_env(cls) -> FleetConfig:
        """
        Load configuration from environment variables.

        A .env file in the working directory is read first. GITLAB_URL and
        GITLAB_TOKEN configure the listing; everything else uses the
        FLEETCLONE_ prefix.

        Returns:
            FleetConfig with environment overrides applied.
        """
        load_dotenv()

        instance = cls()
        config = instance._config

        if os.getenv("GITLAB_URL"):
            config.directory.base_url = os.getenv("GITLAB_URL")

        if os.getenv("GITLAB_TOKEN"):
            config.directory.token = os.getenv("GITLAB_TOKEN")

        if os.getenv("FLEETCLONE_CLONE_METHOD"):
            config.clone.clone_method = os.getenv("FLEETCLONE_CLONE_METHOD")

        if os.getenv("FLEETCLONE_ROOT_DIR"):
            config.clone.root_dir = os.getenv("FLEETCLONE_ROOT_DIR")

        if os.getenv("FLEETCLONE_WORKERS"):
            raw = os.getenv("FLEETCLONE_WORKERS")
            try:
                config.scheduler.worker_count = int(raw)
            except ValueError:
                raise ConfigurationError(
                    f"FLEETCLONE_WORKERS must be an integer, got {raw!r}",
                    details={"worker_count": raw},
                )

        if os.getenv("FLEETCLONE_VERBOSE"):
            config.verbose = os.getenv("FLEETCLONE_VERBOSE").lower() in ("true", "1", "yes")

        return config

    @staticmethod
    def _dict_to_config(data: dict) -> FleetConfig:
        """Convert a dictionary to FleetConfig."""
        config = FleetConfig()

        try:
            if "directory" in data:
                config.directory = DirectoryConfig(**data["directory"])

            if "clone" in data:
                config.clone = CloneConfig(**data["clone"])

            if "scheduler" in data:
                config.scheduler = SchedulerConfig(**data["scheduler"])
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}")

        if "verbose" in data:
            config.verbose = data["verbose"]

        return config

    @classmethod
    def save_to_file(cls, config_path: str) -> None:
        """
        Save current configuration to a JSON file.

        The API token is never written out.

        Args:
            config_path: Path to save the configuration file.
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        config = cls.get()
        data = cls._config_to_dict(config)

        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def _config_to_dict(config: FleetConfig) -> dict:
        """Convert FleetConfig to a dictionary."""
        return {
            "directory": {
                "base_url": config.directory.base_url,
                "per_page": config.directory.per_page,
                "request_timeout": config.directory.request_timeout,
                "verify_tls": config.directory.verify_tls,
            },
            "clone": {
                "clone_method": config.clone.clone_method,
                "root_dir": config.clone.root_dir,
            },
            "scheduler": {
                "worker_count": config.scheduler.worker_count,
            },
            "verbose": config.verbose,
        }
