"""
Environment variable loading and validation for TxWatch.

- ETH_RPC_URL: Ethereum JSON-RPC endpoint (default: public node)
- RPC_TIMEOUT_SEC: HTTP timeout for each RPC request
- POLL_INTERVAL_SEC / DRAIN_INTERVAL_SEC / CURSOR_REPORT_INTERVAL_SEC: driver timers
- WATCH_ADDRESSES: comma-separated addresses subscribed at startup
- STORAGE_BACKEND: memory | sqlite; DB_PATH for sqlite
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is backend_txwatch/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_RPC_URL = "https://ethereum-rpc.publicnode.com"
DEFAULT_RPC_TIMEOUT_SEC = 15.0
DEFAULT_POLL_INTERVAL_SEC = 5.0
DEFAULT_DRAIN_INTERVAL_SEC = 5.0
DEFAULT_CURSOR_REPORT_INTERVAL_SEC = 10.0
DEFAULT_DB_PATH = "txwatch.db"
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000

STORAGE_MEMORY = "memory"
STORAGE_SQLITE = "sqlite"

_TRUTHY = ("1", "true", "yes", "on")


def load_txwatch_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_rpc_url() -> str:
    """Return ETH_RPC_URL (RPC_URL accepted as fallback) or the public node default."""
    load_txwatch_env()
    url = (os.getenv("ETH_RPC_URL") or os.getenv("RPC_URL") or "").strip()
    return url or DEFAULT_RPC_URL


def get_rpc_timeout_sec() -> float:
    load_txwatch_env()
    return _get_float("RPC_TIMEOUT_SEC", DEFAULT_RPC_TIMEOUT_SEC)


def get_poll_interval_sec() -> float:
    load_txwatch_env()
    return _get_float("POLL_INTERVAL_SEC", DEFAULT_POLL_INTERVAL_SEC)


def get_drain_interval_sec() -> float:
    """Seconds between drain-and-log cycles in the worker; 0 disables the drain logger."""
    load_txwatch_env()
    return _get_float("DRAIN_INTERVAL_SEC", DEFAULT_DRAIN_INTERVAL_SEC)


def get_cursor_report_interval_sec() -> float:
    """Seconds between current-block log lines; 0 disables the reporter."""
    load_txwatch_env()
    return _get_float("CURSOR_REPORT_INTERVAL_SEC", DEFAULT_CURSOR_REPORT_INTERVAL_SEC)


def get_watch_addresses() -> list[str]:
    """
    Return WATCH_ADDRESSES split on commas, blanks dropped, order kept.
    Addresses are case-sensitive and are not normalized.
    """
    load_txwatch_env()
    raw = os.getenv("WATCH_ADDRESSES", "")
    return [a.strip() for a in raw.split(",") if a.strip()]


def get_storage_backend() -> str:
    """Return STORAGE_BACKEND: memory | sqlite. Unknown values fall back to memory."""
    load_txwatch_env()
    raw = (os.getenv("STORAGE_BACKEND") or STORAGE_MEMORY).strip().lower()
    if raw in (STORAGE_MEMORY, STORAGE_SQLITE):
        return raw
    return STORAGE_MEMORY


def get_db_path() -> Path:
    load_txwatch_env()
    return Path((os.getenv("DB_PATH") or "").strip() or DEFAULT_DB_PATH)


def get_api_host() -> str:
    load_txwatch_env()
    return (os.getenv("API_HOST") or "").strip() or DEFAULT_API_HOST


def get_api_port() -> int:
    load_txwatch_env()
    return _get_int("API_PORT", DEFAULT_API_PORT)


def stop_on_pass_error() -> bool:
    """
    Return True when the worker should exit after the first failed pass.
    Set STOP_ON_PASS_ERROR=1 to get fail-fast behaviour; default keeps polling.
    """
    load_txwatch_env()
    return (os.getenv("STOP_ON_PASS_ERROR") or "").strip().lower() in _TRUTHY


def mask_rpc_url(url: str) -> str:
    """Hide API keys embedded in provider URLs before logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    parts = url.rstrip("/").rsplit("/", 1)
    # Infura/Alchemy style: https://mainnet.infura.io/v3/<key>
    if len(parts) == 2 and len(parts[1]) >= 32 and parts[1].isalnum():
        return parts[0] + "/***"
    return url
