"""Run counters and the optional Prometheus endpoint."""
