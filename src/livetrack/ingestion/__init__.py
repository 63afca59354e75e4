"""Ingestion layer.

Turns upstream webhook payloads into normalized events for the state store.
"""

__all__: list[str] = []
