"""
Retrying round for StatusChecker.
Runs one probe attempt after another for a single endpoint until one succeeds,
the retry budget is spent, or shutdown is observed.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from status_checker.core.cancellation import CancellationToken
from status_checker.health.probe import Probe
from status_checker.metrics.metrics_exporter import CheckerMetrics
from status_checker.reliability.concurrency_limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


class RoundOutcome(Enum):
    """How a round ended."""
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"


@dataclass
class RetryPolicy:
    max_retries: int = 3
    retry_interval: float = 2.0


async def run_round(endpoint: str, probe: Probe, limiter: ConcurrencyLimiter,
                    token: CancellationToken, policy: RetryPolicy,
                    metrics: Optional[CheckerMetrics] = None) -> RoundOutcome:
    """Run one round of checks for ``endpoint``.

    The attempt counter starts at 0 and grows by one per retry, up to
    ``policy.max_retries``. The admission slot is held only while the probe
    runs, never during the retry wait.
    """
    attempt = 0
    while True:
        if token.cancelled:
            logger.info("Context cancelled, stopping check for %s", endpoint)
            _inc(metrics, "rounds_aborted")
            return RoundOutcome.ABORTED

        await limiter.acquire()
        try:
            if token.cancelled:
                # shutdown arrived while queued for admission
                logger.info("Context cancelled, stopping check for %s", endpoint)
                _inc(metrics, "rounds_aborted")
                return RoundOutcome.ABORTED
            result = await probe.check(endpoint, attempt)
        finally:
            limiter.release()

        if result.ok:
            _inc(metrics, "probe_success")
            _inc(metrics, "rounds_succeeded")
            return RoundOutcome.SUCCEEDED

        _inc(metrics, "probe_failure")
        if attempt >= policy.max_retries:
            logger.warning("Max retries reached for %s, giving up.", endpoint)
            _inc(metrics, "retries_exhausted")
            return RoundOutcome.EXHAUSTED

        attempt += 1
        logger.info("Retrying %s in %ss (retry %d/%d)",
                    endpoint, policy.retry_interval, attempt, policy.max_retries)
        _inc(metrics, "retries_scheduled")
        await token.sleep(policy.retry_interval)


def _inc(metrics: Optional[CheckerMetrics], name: str) -> None:
    if metrics is not None:
        metrics.inc(name)
