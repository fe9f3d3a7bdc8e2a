"""
Main entrypoint: FastAPI server with the ingestion loop in its lifespan, plus
the cursor reporter thread. Transactions are drained over HTTP; the drain
logger only runs in the worker-only process.

The ingestion loop runs in a daemon thread started by the app lifespan so the
API stays responsive; on SIGINT/SIGTERM uvicorn shuts down, the lifespan sets
the stop event and the loop exits after the current block.

Env: ETH_RPC_URL, WATCH_ADDRESSES, STORAGE_BACKEND, DB_PATH, API_HOST, API_PORT, etc.

Worker only (no API): python -m backend_txwatch.agent_worker.runtime
API only (with ingestion): uvicorn backend_txwatch.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os
import threading

# Configure structured JSON logging before other imports that may log
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger("main")


def build_app(settings=None, watcher=None):
    """
    Wire the API process: watcher, cursor reporter thread and the FastAPI app
    (whose lifespan runs the ingestion loop). Returns (app, reporters_stop).

    HTTP clients are the queue consumers here, so the drain logger is never
    started; it would empty the queues before POST /transactions/{address}/drain.
    """
    from dataclasses import replace

    from backend_txwatch.agent_worker.runtime import start_background_threads
    from backend_txwatch.api_server.server import create_app
    from backend_txwatch.config import get_settings
    from backend_txwatch.ingestion.watcher import build_watcher

    settings = settings or get_settings()
    watcher = watcher or build_watcher(settings)
    logger.info(
        "main_subscriptions_loaded",
        source="WATCH_ADDRESSES",
        address_count=len(settings.watch_addresses),
    )
    if settings.drain_interval_sec > 0:
        logger.info("main_drain_logger_disabled", reason="api_drains_queues")

    reporters_stop = threading.Event()
    start_background_threads(watcher, replace(settings, drain_interval_sec=0), reporters_stop)
    return create_app(watcher, settings=settings), reporters_stop


def main() -> None:
    """Build the app, then run FastAPI in the main thread."""
    import uvicorn

    from backend_txwatch.config import get_settings

    settings = get_settings()
    app, reporters_stop = build_app(settings)
    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    try:
        uvicorn.run(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
        )
    finally:
        reporters_stop.set()


if __name__ == "__main__":
    main()
