"""
Test that txwatch_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from txwatch_logging and use the logger."""
    from backend_txwatch.txwatch_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_address_logger():
    from backend_txwatch.txwatch_logging import bind_address

    log = bind_address("0xabc")
    log.info("test_bound_message", block_number=1)


def test_block_hex_added_for_integer_heights():
    from backend_txwatch.txwatch_logging.logger import _add_block_hex

    assert _add_block_hex(None, "info", {"block_number": 19000000})["block_hex"] == "0x121eac0"
    assert _add_block_hex(None, "info", {"block_number": 0})["block_hex"] == "0x0"
    assert "block_hex" not in _add_block_hex(None, "info", {"block_number": "latest"})
    assert "block_hex" not in _add_block_hex(None, "info", {"block_number": None})
    assert "block_hex" not in _add_block_hex(None, "info", {"event": "x"})
