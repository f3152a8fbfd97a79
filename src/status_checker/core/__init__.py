"""Concurrency orchestration: cancellation, work tracking, recurrence, lifecycle."""
