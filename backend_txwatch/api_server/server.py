"""
FastAPI server: HTTP surface over the TransactionWatcher.

Subscribe addresses, check membership, read the current block and drain
per-address queues. The lifespan starts the periodic ingestion loop in a
background thread (never blocks the API) and stops it on shutdown.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend_txwatch import __version__
from backend_txwatch.agent_worker.runner import (
    SHUTDOWN_JOIN_TIMEOUT_SEC,
    RunnerStats,
    run_periodic_ingestion,
)
from backend_txwatch.config import Settings, get_settings
from backend_txwatch.ingestion.watcher import TransactionWatcher, build_watcher
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class SubscribeRequest(BaseModel):
    """POST /subscriptions body."""

    address: str = Field(..., min_length=1, max_length=128, description="Address to watch (case-sensitive)")


class SubscriptionResponse(BaseModel):
    """Subscription state for one address."""

    address: str = Field(..., description="Address as given")
    subscribed: bool = Field(
        ...,
        description="POST: True if newly added, False if already subscribed. GET: membership.",
    )


class CurrentBlockResponse(BaseModel):
    """GET /current-block response."""

    current_height: int = Field(..., ge=0, description="Last fully ingested block; 0 if never set")
    is_set: bool = Field(..., description="False until the first block has been ingested")


class TransactionModel(BaseModel):
    hash: str
    from_: str = Field(..., alias="from")
    to: str | None = None
    value: str

    model_config = {"populate_by_name": True}


class DrainResponse(BaseModel):
    """POST /transactions/{address}/drain response: oldest first; queue is emptied."""

    address: str
    transactions: list[TransactionModel] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def get_watcher(request: Request) -> TransactionWatcher:
    """Dependency: the app-scoped watcher."""
    return request.app.state.watcher


def _ingest_until_stopped(app: FastAPI, stop_event: threading.Event, settings: Settings) -> None:
    """
    Lifespan thread body. With stop_on_pass_error the loop ends after the first
    failed pass; the API keeps serving reads and drains, and the halt is logged
    and kept in app.state.ingestion_stats.
    """
    stats: RunnerStats = app.state.ingestion_stats
    run_periodic_ingestion(
        app.state.watcher,
        stop_event,
        settings.poll_interval_sec,
        stop_on_error=settings.stop_on_pass_error,
        stats=stats,
    )
    if stats.failed_passes and settings.stop_on_pass_error:
        logger.error(
            "api_periodic_ingestion_halted",
            failed_passes=stats.failed_passes,
            error=stats.last_error,
            current_block=app.state.watcher.cursor_height(),
        )


def create_app(
    watcher: TransactionWatcher | None = None,
    *,
    settings: Settings | None = None,
    start_ingestion: bool = True,
) -> FastAPI:
    """
    Build the ASGI app. Without a watcher one is built from settings (env by
    default). start_ingestion=False leaves pass scheduling to the caller.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop_event = threading.Event()
        thread: threading.Thread | None = None
        if start_ingestion:
            thread = threading.Thread(
                target=_ingest_until_stopped,
                args=(app, stop_event, settings),
                name="periodic-ingestion",
                daemon=True,
            )
            thread.start()
            logger.info(
                "api_periodic_ingestion_started",
                interval_sec=settings.poll_interval_sec,
                stop_on_error=settings.stop_on_pass_error,
            )

        yield

        stop_event.set()
        if thread is not None:
            thread.join(timeout=SHUTDOWN_JOIN_TIMEOUT_SEC)
            if thread.is_alive():
                logger.warning(
                    "api_periodic_ingestion_shutdown_timeout",
                    timeout_sec=SHUTDOWN_JOIN_TIMEOUT_SEC,
                )
            else:
                logger.info("api_periodic_ingestion_stopped")

    app = FastAPI(
        title="Backend TxWatch API",
        description="Subscribe addresses and drain their newly observed transactions.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.watcher = watcher or build_watcher(settings)
    app.state.ingestion_stats = RunnerStats()

    @app.post("/subscriptions", response_model=SubscriptionResponse)
    def subscribe(body: SubscribeRequest, w: TransactionWatcher = Depends(get_watcher)) -> JSONResponse:
        """Subscribe an address. 201 when newly added, 200 when already subscribed."""
        address = body.address
        if not address.strip():
            raise HTTPException(status_code=400, detail="address must be non-empty")
        if address != address.strip():
            # Addresses are opaque and stored as given; never rewrite them.
            raise HTTPException(status_code=400, detail="address must not have surrounding whitespace")
        added = w.subscribe(address)
        return JSONResponse(
            status_code=201 if added else 200,
            content=SubscriptionResponse(address=address, subscribed=added).model_dump(),
        )

    @app.get("/subscriptions")
    def list_subscriptions(w: TransactionWatcher = Depends(get_watcher)) -> list[str]:
        return w.subscriptions()

    @app.get("/subscriptions/{address}", response_model=SubscriptionResponse)
    def get_subscription(address: str, w: TransactionWatcher = Depends(get_watcher)) -> SubscriptionResponse:
        return SubscriptionResponse(address=address, subscribed=w.is_subscribed(address))

    @app.get("/current-block", response_model=CurrentBlockResponse)
    def current_block(w: TransactionWatcher = Depends(get_watcher)) -> CurrentBlockResponse:
        height = w.cursor_height()
        return CurrentBlockResponse(current_height=height or 0, is_set=height is not None)

    @app.post("/transactions/{address}/drain", response_model=DrainResponse)
    def drain(address: str, w: TransactionWatcher = Depends(get_watcher)) -> dict[str, Any]:
        """Destructive read: returns queued transactions and empties the queue."""
        return {
            "address": address,
            "transactions": [tx.to_dict() for tx in w.drain_transactions(address)],
        }

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response for HTTPException."""
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    return app
