"""StatusChecker: concurrent liveness checks for a fixed set of endpoints."""

from status_checker.config import CheckerConfig, ConfigError, load_config
from status_checker.core.cancellation import CancellationToken
from status_checker.core.coordinator import RunSummary, StatusChecker
from status_checker.health.probe import HttpProbe, Probe, ProbeResult

__version__ = "1.0.0"

__all__ = [
    "CancellationToken",
    "CheckerConfig",
    "ConfigError",
    "HttpProbe",
    "Probe",
    "ProbeResult",
    "RunSummary",
    "StatusChecker",
    "load_config",
]
