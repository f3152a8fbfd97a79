"""
StatusChecker: module entry point.
``python -m status_checker`` behaves like ``status-checker``.
"""
from status_checker.cli import cli

if __name__ == "__main__":
    cli(prog_name="status-checker")
