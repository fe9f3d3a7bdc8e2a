"""
Agent worker package: periodic driver for the watcher.

Runs ingestion passes on a timer (never overlapping), drains and logs new
transactions, reports the current block, and handles shutdown signals.
"""

from backend_txwatch.agent_worker.runner import (
    RunnerStats,
    drain_and_log,
    run_cursor_reporter,
    run_drain_logger,
    run_periodic_ingestion,
)

__all__ = [
    "RunnerStats",
    "drain_and_log",
    "run_cursor_reporter",
    "run_drain_logger",
    "run_periodic_ingestion",
]
