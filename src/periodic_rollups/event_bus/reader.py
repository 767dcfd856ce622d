"""Local Event Bus reader (file-bus only)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

logger = logging.getLogger("periodic_rollups.event_bus.reader")


@dataclass(frozen=True)
class EbRecord:
    topic: str
    partition: int
    offset: int
    record: dict[str, Any]


class EventBusReader:
    """Replay helper for `<root>/<topic>/partition=<n>.jsonl` logs.

    Offsets are zero-based line numbers, so a consumer that stores
    ``last offset + 1`` resumes exactly after the last line it handled.
    Blank lines keep their offset but yield no record.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def partitions(self, topic: str) -> list[int]:
        topic_dir = self.root / topic
        if not topic_dir.exists():
            return [0]
        found: set[int] = set()
        for path in topic_dir.glob("partition=*.jsonl"):
            token = path.stem.replace("partition=", "")
            try:
                found.add(int(token))
            except ValueError:
                logger.debug("ignoring unexpected bus file %s", path)
                continue
        return sorted(found) or [0]

    def read(
        self,
        topic: str,
        *,
        partition: int = 0,
        from_offset: int = 0,
        max_records: int = 20,
    ) -> list[EbRecord]:
        return list(
            self.iter_read(
                topic,
                partition=partition,
                from_offset=from_offset,
                max_records=max_records,
            )
        )

    def iter_read(
        self,
        topic: str,
        *,
        partition: int = 0,
        from_offset: int = 0,
        max_records: int = 20,
    ) -> Iterator[EbRecord]:
        if max_records <= 0:
            return
        log_path = self._log_path(topic, partition)
        if not log_path.exists():
            return
        emitted = 0
        with log_path.open("r", encoding="utf-8") as handle:
            for line_index, line in enumerate(handle):
                if line_index < from_offset or not line.strip():
                    continue
                payload = json.loads(line)
                if not isinstance(payload, dict):
                    payload = {"value": payload}
                yield EbRecord(topic=topic, partition=partition, offset=line_index, record=payload)
                emitted += 1
                if emitted >= max_records:
                    break

    def _log_path(self, topic: str, partition: int) -> Path:
        return self.root / topic / f"partition={partition}.jsonl"
