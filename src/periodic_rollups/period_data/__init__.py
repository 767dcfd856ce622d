"""Day/hour rollups, actor dedup and oracle report id resolution."""

from .aggregator import BucketAggregator, RecordResult, TotalsView
from .checksum import checksum_hex, to_checksum_address
from .config import RollupConfigError, RollupProfile
from .contracts import (
    ActivityEvent,
    OracleReportEvent,
    PeriodicEventContractError,
    TotalsEvent,
    parse_event,
)
from .entities import (
    ActorDayMarker,
    ActorHourMarker,
    DayBucket,
    GlobalTotals,
    HourBucket,
    OracleReport,
)
from .incremental_ids import IncrementalIdResolver, IncrementalIdSearchError
from .keys import actor_period_key, day_index, hour_index, period_start
from .oracle_runs import OracleReportLocator, OracleSchedule, estimate_run_count
from .projector import PeriodicDataProjector
from .store import EntityStore, build_store

__all__ = [
    "ActivityEvent",
    "ActorDayMarker",
    "ActorHourMarker",
    "BucketAggregator",
    "DayBucket",
    "EntityStore",
    "GlobalTotals",
    "HourBucket",
    "IncrementalIdResolver",
    "IncrementalIdSearchError",
    "OracleReport",
    "OracleReportEvent",
    "OracleReportLocator",
    "OracleSchedule",
    "PeriodicDataProjector",
    "PeriodicEventContractError",
    "RecordResult",
    "RollupConfigError",
    "RollupProfile",
    "TotalsEvent",
    "TotalsView",
    "actor_period_key",
    "build_store",
    "checksum_hex",
    "day_index",
    "estimate_run_count",
    "hour_index",
    "parse_event",
    "period_start",
    "to_checksum_address",
]
