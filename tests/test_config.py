"""Tests for env parsing and Settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from backend_txwatch.config import Settings, get_settings
from backend_txwatch.config import env

_VARS = (
    "ETH_RPC_URL",
    "RPC_URL",
    "RPC_TIMEOUT_SEC",
    "POLL_INTERVAL_SEC",
    "DRAIN_INTERVAL_SEC",
    "CURSOR_REPORT_INTERVAL_SEC",
    "WATCH_ADDRESSES",
    "STORAGE_BACKEND",
    "DB_PATH",
    "API_HOST",
    "API_PORT",
    "STOP_ON_PASS_ERROR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate from the developer's shell and any project .env file."""
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(env, "load_txwatch_env", lambda: None)


def test_defaults():
    s = get_settings()
    assert s.rpc_url == env.DEFAULT_RPC_URL
    assert s.poll_interval_sec == 5.0
    assert s.watch_addresses == ()
    assert s.storage_backend == "memory"
    assert s.db_path == Path("txwatch.db")
    assert s.api_port == 8000
    assert s.stop_on_pass_error is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ETH_RPC_URL", " http://localhost:8545 ")
    monkeypatch.setenv("POLL_INTERVAL_SEC", "2.5")
    monkeypatch.setenv("WATCH_ADDRESSES", "0xAbc, ,0xdef,")
    monkeypatch.setenv("STORAGE_BACKEND", "SQLite")
    monkeypatch.setenv("DB_PATH", "/tmp/w.db")
    monkeypatch.setenv("API_PORT", "9001")
    monkeypatch.setenv("STOP_ON_PASS_ERROR", "yes")

    s = get_settings()

    assert s.rpc_url == "http://localhost:8545"
    assert s.poll_interval_sec == 2.5
    assert s.watch_addresses == ("0xAbc", "0xdef")
    assert s.storage_backend == "sqlite"
    assert s.db_path == Path("/tmp/w.db")
    assert s.api_port == 9001
    assert s.stop_on_pass_error is True


def test_rpc_url_fallback(monkeypatch):
    monkeypatch.setenv("RPC_URL", "http://node:8545")
    assert env.get_rpc_url() == "http://node:8545"


def test_bad_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_SEC", "soon")
    monkeypatch.setenv("API_PORT", "eighty")
    assert env.get_poll_interval_sec() == env.DEFAULT_POLL_INTERVAL_SEC
    assert env.get_api_port() == env.DEFAULT_API_PORT


def test_unknown_storage_backend_falls_back_to_memory(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "postgres")
    assert env.get_storage_backend() == "memory"


def test_settings_clamp_intervals():
    s = Settings(poll_interval_sec=0, rpc_timeout_sec=-1, drain_interval_sec=-5)
    assert s.poll_interval_sec == 0.1
    assert s.rpc_timeout_sec == 0.1
    assert s.drain_interval_sec == 0.0


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://mainnet.infura.io/v3/" + "a" * 32, "https://mainnet.infura.io/v3/***"),
        ("https://rpc.example/?api-key=secret", "https://rpc.example/?api-key=***"),
        ("http://localhost:8545", "http://localhost:8545"),
    ],
)
def test_mask_rpc_url(url, expected):
    assert env.mask_rpc_url(url) == expected
