"""Configuration for StatusChecker.

All tunables are static for the lifetime of a run and are handed to the
coordinator explicitly. Configuration can be built in code, from a mapping,
or from a YAML file.

Author: StatusChecker Team
Version: 1.0.0
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml


DEFAULT_ENDPOINTS = [
    "http://google.com",
    "http://takis.gr",
    "http://facebook.com",
    "http://stackoverflow.com",
    "http://golang.org",
    "http://amazon.com",
]

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(ValueError):
    """Raised when a configuration is missing, malformed or out of range."""


@dataclass
class CheckerConfig:
    """Configuration for a checker run."""
    endpoints: List[str] = field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    max_concurrency: int = 5  # Probes allowed in flight at once
    max_retries: int = 3  # Retries per round after the first attempt
    retry_interval: float = 2.0  # Seconds between attempts within a round
    cooldown: float = 3.0  # Seconds between the end of a round and the next one
    request_timeout: float = 10.0  # Seconds per probe request

    # Ambient
    log_file: Optional[str] = "status_checker.log"
    log_level: str = "INFO"
    metrics_host: str = "127.0.0.1"
    metrics_port: Optional[int] = None  # Metrics server disabled when unset

    def validate(self) -> "CheckerConfig":
        """Check every field and return self.

        Raises:
            ConfigError: If any field is out of range
        """
        if not self.endpoints:
            raise ConfigError("at least one endpoint is required")
        for endpoint in self.endpoints:
            if not isinstance(endpoint, str) or not endpoint.strip():
                raise ConfigError(f"invalid endpoint: {endpoint!r}")
        for name in ("max_concurrency", "max_retries"):
            _require_int(name, getattr(self, name))
        for name in ("retry_interval", "cooldown", "request_timeout"):
            _require_number(name, getattr(self, name))
        if self.metrics_port is not None:
            _require_int("metrics_port", self.metrics_port)
        if self.max_concurrency < 1:
            raise ConfigError("max_concurrency must be at least 1")
        if self.max_retries < 0:
            raise ConfigError("max_retries must not be negative")
        if self.retry_interval < 0:
            raise ConfigError("retry_interval must not be negative")
        if self.cooldown < 0:
            raise ConfigError("cooldown must not be negative")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        if self.metrics_port is not None and not 0 <= self.metrics_port <= 65535:
            raise ConfigError(f"metrics_port out of range: {self.metrics_port}")
        if str(self.log_level).upper() not in _LOG_LEVELS:
            raise ConfigError(f"unknown log_level: {self.log_level}")
        self.log_level = str(self.log_level).upper()
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CheckerConfig":
        """Build a validated config from a mapping.

        Args:
            data: Field values; ``endpoints`` may be a list or a
                comma-separated string

        Returns:
            Validated configuration
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

        values: Dict[str, Any] = dict(data)
        endpoints = values.get("endpoints")
        if isinstance(endpoints, str):
            values["endpoints"] = [e.strip() for e in endpoints.split(",") if e.strip()]
        elif isinstance(endpoints, (list, tuple)):
            values["endpoints"] = list(endpoints)
        elif endpoints is not None:
            raise ConfigError(
                f"endpoints must be a list or a comma-separated string, not {type(endpoints).__name__}"
            )

        try:
            return cls(**values).validate()
        except TypeError as e:
            raise ConfigError(str(e)) from e

    def with_overrides(self, **overrides: Any) -> "CheckerConfig":
        """Return a validated copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes).validate()

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


def _require_int(name: str, value: Any) -> None:
    # bool is an int subclass; YAML "true" must not pass as 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, not {type(value).__name__}")


def _require_number(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, not {type(value).__name__}")


def load_config(path: str) -> CheckerConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is missing or not a valid config document
    """
    if not os.path.exists(path):
        raise ConfigError(f"config file '{path}' not found")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in '{path}': {e}") from e

    if data is None:
        return CheckerConfig().validate()
    if not isinstance(data, dict):
        raise ConfigError(f"config file '{path}' must contain a mapping")

    logging.getLogger(__name__).debug("Loaded configuration from %s", path)
    return CheckerConfig.from_dict(data)
