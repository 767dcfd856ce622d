"""Period-data projector: consume bus events and maintain day/hour rollups."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import cast

from periodic_rollups.event_bus import EbRecord, EventBusReader
from periodic_rollups.logging_utils import configure_logging

from .aggregator import BucketAggregator
from .checksum import checksum_hex
from .config import RollupProfile
from .contracts import (
    ActivityEvent,
    OracleReportEvent,
    PeriodicEventContractError,
    TotalsEvent,
    parse_event,
)
from .entities import Checkpoint, GlobalTotals, OracleReport, TOTALS_ID
from .incremental_ids import IncrementalIdResolver
from .oracle_runs import OracleReportLocator
from .store import EntityStore, build_store

logger = logging.getLogger("periodic_rollups.period_data.projector")

_METRIC_NAMES = (
    "events_seen",
    "activity_applied",
    "totals_applied",
    "oracle_reports_applied",
    "invalid_event",
)


class PeriodicDataProjector:
    def __init__(self, profile: RollupProfile, *, store: EntityStore | None = None) -> None:
        self.profile = profile
        self.store = store or build_store(profile.wiring.store_dsn)
        self.reader = EventBusReader(Path(profile.wiring.event_bus_root))
        self.aggregator = BucketAggregator(self.store)
        self.resolver = IncrementalIdResolver(self.store.exists, max_lookups=profile.policy.max_id_lookups)
        self.oracle_reports = OracleReportLocator(self.resolver, profile.policy.oracle)
        self.metrics: dict[str, int] = {name: 0 for name in _METRIC_NAMES}
        logger.info(
            "period-data projector ready: stream_id=%s topics=%s oracle_period=%s runs_buffer=%s",
            profile.policy.stream_id,
            ",".join(profile.wiring.event_bus_topics),
            profile.policy.oracle.period_seconds,
            profile.policy.oracle.runs_buffer,
        )

    @classmethod
    def build(cls, profile_path: str) -> "PeriodicDataProjector":
        return cls(RollupProfile.load(Path(profile_path)))

    def run_once(self) -> int:
        processed = 0
        for topic in self.profile.wiring.event_bus_topics:
            for partition in self.reader.partitions(topic):
                processed += self._consume_partition(topic, partition)
        return processed

    def run_forever(self) -> None:
        while True:
            processed = self.run_once()
            if processed == 0:
                time.sleep(self.profile.wiring.poll_sleep_seconds)

    def _consume_partition(self, topic: str, partition: int) -> int:
        checkpoint = self._load_checkpoint(topic, partition)
        processed = 0
        for record in self.reader.iter_read(
            topic,
            partition=partition,
            from_offset=checkpoint.next_offset,
            max_records=self.profile.wiring.poll_max_records,
        ):
            with self.store.transaction():
                self._process_record(record)
                checkpoint.next_offset = record.offset + 1
                self.store.save(checkpoint)
            processed += 1
        if processed:
            logger.info(
                "period-data projector topic=%s partition=%s processed=%s next_offset=%s",
                topic,
                partition,
                processed,
                checkpoint.next_offset,
            )
        return processed

    def _process_record(self, record: EbRecord) -> None:
        self.metrics["events_seen"] += 1
        try:
            event = parse_event(record.record)
        except PeriodicEventContractError as exc:
            self.metrics["invalid_event"] += 1
            logger.warning(
                "skipping invalid event topic=%s partition=%s offset=%s code=%s detail=%s",
                record.topic,
                record.partition,
                record.offset,
                exc.code,
                exc.detail,
            )
            return
        if isinstance(event, ActivityEvent):
            self.aggregator.record_periodic_event(event)
            self.metrics["activity_applied"] += 1
        elif isinstance(event, TotalsEvent):
            self._apply_totals(event)
            self.metrics["totals_applied"] += 1
        else:
            self._apply_oracle_report(event)
            self.metrics["oracle_reports_applied"] += 1

    def _apply_totals(self, event: TotalsEvent) -> None:
        totals = self.store.load(GlobalTotals.KIND, TOTALS_ID) or self.store.create(GlobalTotals.KIND, TOTALS_ID)
        totals = cast(GlobalTotals, totals)
        totals.value_total_a = event.value_total_a
        totals.value_total_b = event.value_total_b
        self.store.save(totals)

    def _apply_oracle_report(self, event: OracleReportEvent) -> None:
        estimated_id = self.oracle_reports.next_report_id(event.timestamp)
        report_id = estimated_id
        while self.store.exists(OracleReport.KIND, report_id):
            report_id = str(int(report_id) + 1)
        if report_id != estimated_id:
            logger.warning(
                "oracle report id estimate behind stored reports: estimated=%s stored_as=%s ts=%s",
                estimated_id,
                report_id,
                event.timestamp,
            )
        report = cast(OracleReport, self.store.create(OracleReport.KIND, report_id))
        report.timestamp = event.timestamp
        report.reporter = checksum_hex(event.reporter)
        report.value_total_a = event.value_total_a
        report.value_total_b = event.value_total_b
        self.store.save(report)
        logger.info("oracle report stored id=%s reporter=%s ts=%s", report_id, report.reporter, event.timestamp)

    def _load_checkpoint(self, topic: str, partition: int) -> Checkpoint:
        checkpoint_id = f"{self.profile.policy.stream_id}|{topic}|{partition}"
        checkpoint = self.store.load(Checkpoint.KIND, checkpoint_id)
        if checkpoint is None:
            checkpoint = self.store.create(Checkpoint.KIND, checkpoint_id)
        return cast(Checkpoint, checkpoint)


def main() -> None:
    parser = argparse.ArgumentParser(description="Period-data rollup projector")
    parser.add_argument("--profile", required=True, help="Path to rollups profile YAML")
    parser.add_argument("--once", action="store_true", help="Process a single batch and exit")
    parser.add_argument("--log-path", action="append", default=None, help="Extra log file (repeatable)")
    args = parser.parse_args()

    configure_logging(level=logging.INFO, log_paths=args.log_path)
    projector = PeriodicDataProjector.build(args.profile)
    if args.once:
        processed = projector.run_once()
        logger.info("period-data projector processed=%s metrics=%s", processed, projector.metrics)
        return
    projector.run_forever()


if __name__ == "__main__":
    main()
