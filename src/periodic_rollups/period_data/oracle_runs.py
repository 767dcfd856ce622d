"""Oracle run-count estimation and report id lookup."""

from __future__ import annotations

from dataclasses import dataclass
import math

from .entities import OracleReport
from .incremental_ids import IncrementalIdResolver

DEFAULT_FIRST_REPORT_TS = 1610016625
DEFAULT_PERIOD_SECONDS = 86400
DEFAULT_RUNS_BUFFER = 50


def estimate_run_count(
    current_time: int,
    first_occurrence_time: int,
    period_length: int,
    safety_buffer: int,
) -> int:
    """Over-estimate how many periodic runs happened since the first one.

    Rounds up with real division so the result never falls below the true
    count while ``period_length`` bounds the real spacing; ``safety_buffer``
    absorbs runs that arrive late. Returns 0 at or before the first run.
    """
    if period_length <= 0:
        raise ValueError(f"period_length must be positive, got {period_length}")
    if safety_buffer < 0:
        raise ValueError(f"safety_buffer must be non-negative, got {safety_buffer}")
    elapsed = int(current_time) - int(first_occurrence_time)
    probable = math.ceil(elapsed / period_length)
    if probable <= 0:
        return 0
    return probable + int(safety_buffer)


@dataclass(frozen=True)
class OracleSchedule:
    first_report_ts: int = DEFAULT_FIRST_REPORT_TS
    period_seconds: int = DEFAULT_PERIOD_SECONDS
    runs_buffer: int = DEFAULT_RUNS_BUFFER


class OracleReportLocator:
    def __init__(
        self,
        resolver: IncrementalIdResolver,
        schedule: OracleSchedule,
        *,
        kind: str = OracleReport.KIND,
    ) -> None:
        self.resolver = resolver
        self.schedule = schedule
        self.kind = kind

    def estimate(self, now: int) -> int:
        return estimate_run_count(
            now,
            self.schedule.first_report_ts,
            self.schedule.period_seconds,
            self.schedule.runs_buffer,
        )

    def latest_report_id(self, now: int) -> str:
        return self.resolver.last_existing(self.kind, self.estimate(now))

    def next_report_id(self, now: int) -> str:
        return self.resolver.next_free(self.kind, self.estimate(now))
