"""Ingestion layer.

This package turns payloads delivered by snapshot sources (MQTT, SSE or an
in-process caller) into normalized region names, snapshots and beacon
events.
"""

__all__: list[str] = []
