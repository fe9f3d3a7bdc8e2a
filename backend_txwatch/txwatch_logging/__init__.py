"""
Structured logging for Backend TxWatch.

JSON logs with timestamp, level and event_type. Use get_logger() in every module.
"""

from backend_txwatch.txwatch_logging.logger import bind_address, configure_structlog, get_logger

__all__ = ["bind_address", "configure_structlog", "get_logger"]
