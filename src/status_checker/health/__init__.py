"""Endpoint probing and per-round retry logic."""
