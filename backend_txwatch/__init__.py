"""
Backend TxWatch: subscription-based Ethereum transaction watcher.

Polls an Ethereum JSON-RPC node block by block, keeps the transactions that
touch subscribed addresses in per-address queues, and advances a progress
cursor only after each block is fully recorded. Modular layout: eth_listener
(RPC gateway), database (storage contracts), ingestion (orchestrator + watcher
facade), agent_worker (periodic driver) and api_server (HTTP surface).
"""

__version__ = "0.1.0"
