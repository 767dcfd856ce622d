import json
from pathlib import Path

from periodic_rollups.event_bus import EventBusReader


def _write_lines(root: Path, topic: str, lines: list[str], *, partition: int = 0) -> None:
    topic_dir = root / topic
    topic_dir.mkdir(parents=True, exist_ok=True)
    (topic_dir / f"partition={partition}.jsonl").write_text("\n".join(lines) + "\n", encoding="utf-8")


def _events(count: int) -> list[str]:
    return [json.dumps({"event_id": f"evt-{idx}", "ts": 100 + idx}) for idx in range(count)]


def test_reader_returns_offsets(tmp_path: Path) -> None:
    _write_lines(tmp_path, "rollups.bus.activity.v1", _events(3))
    reader = EventBusReader(tmp_path)
    records = reader.read("rollups.bus.activity.v1", from_offset=0, max_records=10)
    assert [record.offset for record in records] == [0, 1, 2]
    assert records[0].record["event_id"] == "evt-0"


def test_reader_from_offset(tmp_path: Path) -> None:
    _write_lines(tmp_path, "rollups.bus.activity.v1", _events(5))
    reader = EventBusReader(tmp_path)
    records = reader.read("rollups.bus.activity.v1", from_offset=3, max_records=10)
    assert [record.offset for record in records] == [3, 4]


def test_reader_respects_max_records(tmp_path: Path) -> None:
    _write_lines(tmp_path, "rollups.bus.activity.v1", _events(5))
    reader = EventBusReader(tmp_path)
    assert len(reader.read("rollups.bus.activity.v1", max_records=2)) == 2
    assert reader.read("rollups.bus.activity.v1", max_records=0) == []


def test_reader_skips_blank_lines_but_keeps_line_offsets(tmp_path: Path) -> None:
    lines = _events(2)
    _write_lines(tmp_path, "rollups.bus.activity.v1", [lines[0], "", lines[1]])
    reader = EventBusReader(tmp_path)
    records = reader.read("rollups.bus.activity.v1", max_records=10)
    assert [record.offset for record in records] == [0, 2]


def test_reader_missing_topic_is_empty(tmp_path: Path) -> None:
    reader = EventBusReader(tmp_path)
    assert reader.read("rollups.bus.missing.v1") == []
    assert reader.partitions("rollups.bus.missing.v1") == [0]


def test_partitions_are_sorted_and_ignore_foreign_files(tmp_path: Path) -> None:
    _write_lines(tmp_path, "rollups.bus.activity.v1", _events(1), partition=2)
    _write_lines(tmp_path, "rollups.bus.activity.v1", _events(1), partition=0)
    (tmp_path / "rollups.bus.activity.v1" / "partition=x.jsonl").write_text("", encoding="utf-8")
    reader = EventBusReader(tmp_path)
    assert reader.partitions("rollups.bus.activity.v1") == [0, 2]
