"""Bucket and marker key derivation."""

from __future__ import annotations

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600

_MARKER_SEPARATOR = "-"


def day_index(timestamp: int) -> int:
    return int(timestamp) // SECONDS_PER_DAY


def hour_index(timestamp: int) -> int:
    return int(timestamp) // SECONDS_PER_HOUR


def period_start(index: int, period_length: int) -> int:
    return int(index) * int(period_length)


def actor_period_key(actor_id: str, period_index: int) -> str:
    return f"{actor_id}{_MARKER_SEPARATOR}{int(period_index)}"
