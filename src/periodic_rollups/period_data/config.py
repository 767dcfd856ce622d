"""Period-data profile loader."""

from __future__ import annotations

from dataclasses import dataclass
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .oracle_runs import (
    DEFAULT_FIRST_REPORT_TS,
    DEFAULT_PERIOD_SECONDS,
    DEFAULT_RUNS_BUFFER,
    OracleSchedule,
)

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")
_DEFAULT_STORE_DSN = "runs/rollups/rollups.db"
_DEFAULT_BUS_ROOT = "runs/rollups/eb"


class RollupConfigError(ValueError):
    pass


@dataclass(frozen=True)
class RollupPolicy:
    stream_id: str
    oracle: OracleSchedule
    max_id_lookups: int | None


@dataclass(frozen=True)
class RollupWiring:
    profile_id: str
    store_dsn: str
    event_bus_root: str
    event_bus_topics: list[str]
    poll_max_records: int
    poll_sleep_seconds: float


@dataclass(frozen=True)
class RollupProfile:
    policy: RollupPolicy
    wiring: RollupWiring

    @classmethod
    def load(cls, path: Path) -> "RollupProfile":
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise RollupConfigError(f"profile must be a mapping: {path}")
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "RollupProfile":
        if "rollups" in data:
            data = data["rollups"] or {}
        policy = data.get("policy") or {}
        wiring = data.get("wiring") or {}
        event_bus = wiring.get("event_bus") or {}
        oracle = policy.get("oracle") or {}

        schedule = OracleSchedule(
            first_report_ts=_as_int(oracle.get("first_report_ts"), DEFAULT_FIRST_REPORT_TS, "first_report_ts"),
            period_seconds=_as_int(oracle.get("period_seconds"), DEFAULT_PERIOD_SECONDS, "period_seconds"),
            runs_buffer=_as_int(oracle.get("runs_buffer"), DEFAULT_RUNS_BUFFER, "runs_buffer"),
        )
        if schedule.period_seconds <= 0:
            raise RollupConfigError("oracle.period_seconds must be positive")
        if schedule.runs_buffer < 0:
            raise RollupConfigError("oracle.runs_buffer must be non-negative")

        max_id_lookups = policy.get("max_id_lookups")
        if max_id_lookups is not None:
            max_id_lookups = _as_int(max_id_lookups, 0, "max_id_lookups")
            if max_id_lookups <= 0:
                raise RollupConfigError("max_id_lookups must be positive when set")

        store_dsn = _resolve_env(wiring.get("store_dsn")) or os.getenv("ROLLUPS_STORE_DSN") or _DEFAULT_STORE_DSN
        event_bus_root = _resolve_env(event_bus.get("root") or event_bus.get("path")) or _DEFAULT_BUS_ROOT
        raw_topics = event_bus.get("topics") or []
        if isinstance(raw_topics, str):
            raw_topics = [raw_topics]
        topics = [str(item) for item in list(raw_topics) if str(item).strip()]
        if not topics:
            raise RollupConfigError("event_bus.topics must list at least one topic")

        poll_max_records = _as_int(wiring.get("poll_max_records"), 200, "poll_max_records")
        if poll_max_records <= 0:
            raise RollupConfigError("poll_max_records must be positive")
        try:
            poll_sleep_seconds = float(wiring.get("poll_sleep_seconds", 0.2))
        except (TypeError, ValueError):
            raise RollupConfigError("poll_sleep_seconds must be a number") from None

        return cls(
            policy=RollupPolicy(
                stream_id=str(policy.get("stream_id") or "rollups.v0"),
                oracle=schedule,
                max_id_lookups=max_id_lookups,
            ),
            wiring=RollupWiring(
                profile_id=str(data.get("profile_id") or wiring.get("profile_id") or "local"),
                store_dsn=str(store_dsn),
                event_bus_root=str(event_bus_root),
                event_bus_topics=topics,
                poll_max_records=poll_max_records,
                poll_sleep_seconds=poll_sleep_seconds,
            ),
        )


def _resolve_env(value: Any) -> Any:
    if value is None or not isinstance(value, str):
        return value
    match = _ENV_PATTERN.fullmatch(value.strip())
    if not match:
        return value
    return os.getenv(match.group(1), "")


def _as_int(value: Any, default: int, name: str) -> int:
    value = _resolve_env(value)
    if value in (None, ""):
        return default
    if isinstance(value, bool):
        raise RollupConfigError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RollupConfigError(f"{name} must be an integer") from None
