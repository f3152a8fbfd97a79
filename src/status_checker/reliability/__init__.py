"""Admission control for probes."""
