"""Event Bus readers."""

from .reader import EbRecord, EventBusReader

__all__ = [
    "EbRecord",
    "EventBusReader",
]
