import asyncio

from status_checker.config import CheckerConfig
from status_checker.core.coordinator import StatusChecker
from status_checker.core.signals import install_signal_handlers, remove_signal_handlers
from status_checker.logging_setup import configure_logging
from status_checker.metrics.metrics_exporter import MetricsExporter


async def main():
    config = CheckerConfig(
        endpoints=[
            "http://localhost:8001/health",
            "http://localhost:8002/health",
        ],
        max_concurrency=2,
        max_retries=3,
        retry_interval=2.0,
        cooldown=3.0,
    )
    configure_logging(config.log_level, config.log_file)

    checker = StatusChecker(config)
    installed = install_signal_handlers(checker)

    # Metrics exporter
    metrics = MetricsExporter(
        checker.metrics, port=9090,
        state_getter=lambda: {"limiter": checker.limiter, "tracker": checker.tracker},
    )
    await metrics.start()

    print("Checking endpoints. Metrics on :9090/metrics. Press Ctrl+C to stop.")
    try:
        summary = await checker.run()
    finally:
        await metrics.stop()
        remove_signal_handlers(installed)

    print(f"Drained after {summary.rounds_started} round(s), {summary.probes} probe(s).")


if __name__ == "__main__":
    asyncio.run(main())
