"""
Application settings and environment configuration.

Gathers the env helpers into one typed, immutable Settings object used by the
worker runtime, the API server and main.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from backend_txwatch.config import env

MIN_INTERVAL_SEC = 0.1


@dataclass(frozen=True)
class Settings:
    """Typed settings (RPC endpoint, timers, storage, API bind address, logging)."""

    rpc_url: str = env.DEFAULT_RPC_URL
    rpc_timeout_sec: float = env.DEFAULT_RPC_TIMEOUT_SEC
    poll_interval_sec: float = env.DEFAULT_POLL_INTERVAL_SEC
    drain_interval_sec: float = env.DEFAULT_DRAIN_INTERVAL_SEC
    cursor_report_interval_sec: float = env.DEFAULT_CURSOR_REPORT_INTERVAL_SEC
    watch_addresses: tuple[str, ...] = field(default_factory=tuple)
    storage_backend: str = env.STORAGE_MEMORY
    db_path: Path = Path(env.DEFAULT_DB_PATH)
    api_host: str = env.DEFAULT_API_HOST
    api_port: int = env.DEFAULT_API_PORT
    stop_on_pass_error: bool = False

    def __post_init__(self) -> None:
        # Poll interval must stay positive; the two reporters may be disabled with 0.
        object.__setattr__(self, "poll_interval_sec", max(MIN_INTERVAL_SEC, float(self.poll_interval_sec)))
        object.__setattr__(self, "drain_interval_sec", max(0.0, float(self.drain_interval_sec)))
        object.__setattr__(
            self, "cursor_report_interval_sec", max(0.0, float(self.cursor_report_interval_sec))
        )
        object.__setattr__(self, "rpc_timeout_sec", max(MIN_INTERVAL_SEC, float(self.rpc_timeout_sec)))


def get_settings() -> Settings:
    """
    Return the current application settings built from the environment.

    Returns:
        Settings with rpc_url, timers, watch_addresses, storage_backend,
        db_path, api_host, api_port and stop_on_pass_error.
    """
    return Settings(
        rpc_url=env.get_rpc_url(),
        rpc_timeout_sec=env.get_rpc_timeout_sec(),
        poll_interval_sec=env.get_poll_interval_sec(),
        drain_interval_sec=env.get_drain_interval_sec(),
        cursor_report_interval_sec=env.get_cursor_report_interval_sec(),
        watch_addresses=tuple(env.get_watch_addresses()),
        storage_backend=env.get_storage_backend(),
        db_path=env.get_db_path(),
        api_host=env.get_api_host(),
        api_port=env.get_api_port(),
        stop_on_pass_error=env.stop_on_pass_error(),
    )
