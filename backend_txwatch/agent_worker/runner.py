"""
Periodic driver loops for the watcher.

- run_periodic_ingestion(): one ingestion pass per interval until stop_event.
- run_drain_logger(): drains every subscribed address and logs each new transaction.
- run_cursor_reporter(): logs the current block at a fixed interval.

Each loop runs in its own thread (see runtime.py / api_server lifespan). Only
run_periodic_ingestion() invokes passes, so passes never overlap.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from backend_txwatch.core.exceptions import IngestionError
from backend_txwatch.ingestion.watcher import TransactionWatcher
from backend_txwatch.txwatch_logging import bind_address, get_logger

logger = get_logger(__name__)

DEFAULT_PERIODIC_INTERVAL_SEC = 5.0
MIN_PERIODIC_INTERVAL_SEC = 0.1
SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0


@dataclass
class RunnerStats:
    """Counters for the ingestion loop (exposed for logs and tests)."""

    passes: int = 0
    failed_passes: int = 0
    last_error: str | None = None


def run_periodic_ingestion(
    watcher: TransactionWatcher,
    stop_event: threading.Event,
    interval_sec: float = DEFAULT_PERIODIC_INTERVAL_SEC,
    *,
    stop_on_error: bool = False,
    stats: RunnerStats | None = None,
) -> RunnerStats:
    """
    Run an ingestion pass, then wait interval_sec (or until stop_event), repeat.

    A failed pass is logged and retried on the next tick; the cursor already
    points at the block to resume from. With stop_on_error the loop sets
    stop_event and returns after the first failure.
    """
    stats = stats or RunnerStats()
    interval = max(MIN_PERIODIC_INTERVAL_SEC, interval_sec)
    logger.info("periodic_ingestion_started", interval_sec=interval, stop_on_error=stop_on_error)
    while not stop_event.is_set():
        tick_start = time.monotonic()
        stats.passes += 1
        try:
            result = watcher.run_ingestion_pass(stop_event)
            logger.debug(
                "periodic_ingestion_pass_done",
                duration_sec=round(time.monotonic() - tick_start, 3),
                **result.to_dict(),
            )
        except IngestionError as e:
            stats.failed_passes += 1
            stats.last_error = str(e)
            logger.error(
                "periodic_ingestion_pass_failed",
                block_number=e.height,
                current_block=watcher.cursor_height(),
                error=str(e),
            )
            if stop_on_error:
                stop_event.set()
                break
        except Exception as e:
            stats.failed_passes += 1
            stats.last_error = str(e)
            logger.exception("periodic_ingestion_tick_error", error=str(e))
            if stop_on_error:
                stop_event.set()
                break
        stop_event.wait(timeout=interval)
    logger.info(
        "periodic_ingestion_stopped",
        passes=stats.passes,
        failed_passes=stats.failed_passes,
    )
    return stats


def drain_and_log(watcher: TransactionWatcher) -> int:
    """Drain every subscribed address once and log each transaction. Returns count drained."""
    total = 0
    for address in watcher.subscriptions():
        log = bind_address(address)
        for tx in watcher.drain_transactions(address):
            total += 1
            log.info(
                "new_transaction",
                transaction_hash=tx.hash,
                value=tx.value,
                sender=tx.sender,
                receiver=tx.receiver,
            )
    return total


def run_drain_logger(
    watcher: TransactionWatcher,
    stop_event: threading.Event,
    interval_sec: float,
) -> None:
    """Every interval_sec, drain and log queued transactions for all subscriptions."""
    logger.info("drain_logger_started", interval_sec=interval_sec)
    while not stop_event.wait(timeout=interval_sec):
        drain_and_log(watcher)
    logger.info("drain_logger_stopped")


def run_cursor_reporter(
    watcher: TransactionWatcher,
    stop_event: threading.Event,
    interval_sec: float,
) -> None:
    """Every interval_sec, log the last fully ingested block."""
    while not stop_event.wait(timeout=interval_sec):
        height = watcher.cursor_height()
        logger.info("current_block", block_number=height)
    logger.info("cursor_reporter_stopped")
