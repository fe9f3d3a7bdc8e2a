"""
Standalone worker process: ingestion loop plus drain logger and cursor reporter.

Loads Settings from the environment, builds the watcher, subscribes
WATCH_ADDRESSES, and runs until SIGINT/SIGTERM. Each signal only sets the
shared stop event; the in-flight block fetch finishes (bounded by the RPC
timeout) and the cursor stays at the last fully recorded block.

Usage: python -m backend_txwatch.agent_worker.runtime
"""

from __future__ import annotations

import signal
import sys
import threading
from typing import Any

from backend_txwatch.agent_worker.runner import (
    SHUTDOWN_JOIN_TIMEOUT_SEC,
    RunnerStats,
    run_cursor_reporter,
    run_drain_logger,
    run_periodic_ingestion,
)
from backend_txwatch.config import Settings, get_settings
from backend_txwatch.config.env import mask_rpc_url
from backend_txwatch.ingestion.watcher import TransactionWatcher, build_watcher
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger(__name__)


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Set stop_event on SIGINT/SIGTERM (main thread only; ignored elsewhere)."""

    def _handle_sig(signum: int, frame: Any) -> None:
        sig = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
        logger.info("runtime_shutdown_signal", signal=sig)
        stop_event.set()

    try:
        signal.signal(signal.SIGINT, _handle_sig)
        if hasattr(signal, "SIGTERM"):
            signal.signal(signal.SIGTERM, _handle_sig)
    except (ValueError, OSError):
        # Signal only valid in main thread / not supported on this platform
        pass


def start_background_threads(
    watcher: TransactionWatcher,
    settings: Settings,
    stop_event: threading.Event,
) -> list[threading.Thread]:
    """Start drain logger and cursor reporter threads (skipped when their interval is 0)."""
    threads: list[threading.Thread] = []
    if settings.drain_interval_sec > 0:
        threads.append(
            threading.Thread(
                target=run_drain_logger,
                args=(watcher, stop_event, settings.drain_interval_sec),
                name="drain-logger",
                daemon=True,
            )
        )
    if settings.cursor_report_interval_sec > 0:
        threads.append(
            threading.Thread(
                target=run_cursor_reporter,
                args=(watcher, stop_event, settings.cursor_report_interval_sec),
                name="cursor-reporter",
                daemon=True,
            )
        )
    for t in threads:
        t.start()
    return threads


def run(settings: Settings, watcher: TransactionWatcher | None = None) -> RunnerStats:
    """Run the ingestion loop in the calling thread until stopped; returns loop stats."""
    watcher = watcher or build_watcher(settings)
    stop_event = threading.Event()
    install_signal_handlers(stop_event)
    logger.info(
        "runtime_worker_started",
        rpc_url=mask_rpc_url(settings.rpc_url),
        storage_backend=settings.storage_backend,
        subscriptions=len(watcher.subscriptions()),
        poll_interval_sec=settings.poll_interval_sec,
    )
    threads = start_background_threads(watcher, settings, stop_event)
    try:
        stats = run_periodic_ingestion(
            watcher,
            stop_event,
            settings.poll_interval_sec,
            stop_on_error=settings.stop_on_pass_error,
        )
    finally:
        stop_event.set()
        for t in threads:
            t.join(timeout=SHUTDOWN_JOIN_TIMEOUT_SEC)
    logger.info("runtime_worker_stopped", current_block=watcher.cursor_height())
    return stats


def main() -> int:
    """CLI entrypoint: load settings from env and run the worker loop."""
    try:
        settings = get_settings()
        if not settings.watch_addresses:
            logger.warning(
                "runtime_no_subscriptions",
                message="WATCH_ADDRESSES is empty; blocks are walked but nothing is recorded",
            )
        stats = run(settings)
        if settings.stop_on_pass_error and stats.failed_passes:
            return 1
        return 0
    except KeyboardInterrupt:
        logger.info("runtime_keyboard_interrupt")
        return 0
    except Exception as e:
        logger.exception("runtime_fatal", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
