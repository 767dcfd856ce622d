"""Day/hour rollups with per-period distinct actor counts."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import cast

from .contracts import ActivityEvent
from .entities import (
    ActorDayMarker,
    ActorHourMarker,
    DayBucket,
    GlobalTotals,
    HourBucket,
    PeriodBucket,
    TOTALS_ID,
    ZERO_BD,
)
from .keys import SECONDS_PER_DAY, SECONDS_PER_HOUR, actor_period_key, day_index, hour_index, period_start
from .store import EntityStore

logger = logging.getLogger("periodic_rollups.period_data.aggregator")


@dataclass(frozen=True)
class _Granularity:
    bucket_kind: str
    marker_kind: str
    period_seconds: int


_DAY = _Granularity(DayBucket.KIND, ActorDayMarker.KIND, SECONDS_PER_DAY)
_HOUR = _Granularity(HourBucket.KIND, ActorHourMarker.KIND, SECONDS_PER_HOUR)


@dataclass(frozen=True)
class RecordResult:
    day_id: str
    hour_id: str
    new_day_actors: int
    new_hour_actors: int


class TotalsView:
    """Read-only access to the GlobalTotals singleton."""

    def __init__(self, store: EntityStore, *, totals_id: str = TOTALS_ID) -> None:
        self._store = store
        self._totals_id = totals_id

    def snapshot(self) -> GlobalTotals | None:
        return cast("GlobalTotals | None", self._store.load(GlobalTotals.KIND, self._totals_id))


class BucketAggregator:
    def __init__(self, store: EntityStore, totals: TotalsView | None = None) -> None:
        self.store = store
        self.totals = totals or TotalsView(store)

    def record_event(
        self,
        actor_from: str,
        actor_to: str | None = None,
        *,
        timestamp: int,
        delta_event_count: int = 1,
    ) -> RecordResult:
        """Roll one event into its day and hour buckets.

        Re-recording the same actor in the same period never bumps
        ``active_actors`` twice, but ``event_count`` and the copied totals are
        applied on every call.
        """
        if delta_event_count < 0:
            raise ValueError(f"delta_event_count must be non-negative, got {delta_event_count}")
        day = day_index(timestamp)
        hour = hour_index(timestamp)
        totals = self.totals.snapshot()

        self._update_bucket(_DAY, day, totals, delta_event_count)
        self._update_bucket(_HOUR, hour, totals, delta_event_count)
        actors = [actor for actor in (actor_from, actor_to) if actor]
        new_day_actors = sum(self._mark_actor(_DAY, day, actor) for actor in actors)
        new_hour_actors = sum(self._mark_actor(_HOUR, hour, actor) for actor in actors)

        logger.debug(
            "rolled event ts=%s day=%s hour=%s new_day_actors=%s new_hour_actors=%s",
            timestamp,
            day,
            hour,
            new_day_actors,
            new_hour_actors,
        )
        return RecordResult(
            day_id=str(day),
            hour_id=str(hour),
            new_day_actors=new_day_actors,
            new_hour_actors=new_hour_actors,
        )

    def record_periodic_event(self, event: ActivityEvent) -> RecordResult:
        return self.record_event(event.actor_from, event.actor_to, timestamp=event.timestamp)

    def _update_bucket(
        self,
        granularity: _Granularity,
        index: int,
        totals: GlobalTotals | None,
        delta_event_count: int,
    ) -> None:
        bucket = self._load_or_create_bucket(granularity, index)
        if totals is not None:
            bucket.value_total_a = totals.value_total_a
            bucket.value_total_b = totals.value_total_b
        bucket.event_count += delta_event_count
        self.store.save(bucket)

    def _mark_actor(self, granularity: _Granularity, index: int, actor: str) -> int:
        marker_id = actor_period_key(actor, index)
        marker = self.store.load(granularity.marker_kind, marker_id)
        added = 0
        if marker is None:
            marker = self.store.create(granularity.marker_kind, marker_id)
            bucket = self._load_or_create_bucket(granularity, index)
            bucket.active_actors += 1
            self.store.save(bucket)
            added = 1
        self.store.save(marker)
        return added

    def _load_or_create_bucket(self, granularity: _Granularity, index: int) -> PeriodBucket:
        bucket_id = str(index)
        existing = self.store.load(granularity.bucket_kind, bucket_id)
        if existing is not None:
            return cast(PeriodBucket, existing)
        bucket = cast(PeriodBucket, self.store.create(granularity.bucket_kind, bucket_id))
        bucket.period_start = period_start(index, granularity.period_seconds)
        bucket.active_actors = 0
        bucket.event_count = 0
        bucket.value_total_a = ZERO_BD
        bucket.value_total_b = ZERO_BD
        return bucket
