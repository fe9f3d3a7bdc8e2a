"""
API server package: HTTP interface for subscribers.

Exposes subscription, current-block and drain endpoints over the watcher;
the ingestion loop runs in the app lifespan.
"""
