# Block ingestion: orchestrator (cursor-driven walk) and the watcher facade.

from backend_txwatch.ingestion.orchestrator import IngestionOrchestrator, PassResult
from backend_txwatch.ingestion.watcher import TransactionWatcher, build_watcher

__all__ = [
    "IngestionOrchestrator",
    "PassResult",
    "TransactionWatcher",
    "build_watcher",
]
