from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from periodic_rollups.period_data.config import RollupConfigError, RollupProfile


def _write(path: Path, payload: dict[str, object]) -> Path:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def test_profile_loads_with_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ROLLUPS_STORE_DSN", raising=False)
    profile = RollupProfile.load(
        _write(tmp_path / "profile.yaml", {"rollups": {"wiring": {"event_bus": {"topics": ["t.v1"]}}}})
    )
    assert profile.policy.stream_id == "rollups.v0"
    assert profile.policy.oracle.period_seconds == 86400
    assert profile.policy.oracle.runs_buffer == 50
    assert profile.policy.oracle.first_report_ts == 1610016625
    assert profile.policy.max_id_lookups is None
    assert profile.wiring.store_dsn == "runs/rollups/rollups.db"
    assert profile.wiring.event_bus_topics == ["t.v1"]
    assert profile.wiring.poll_max_records == 200


def test_profile_resolves_env_placeholders(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_ROLLUPS_DSN", str(tmp_path / "x.db"))
    monkeypatch.setenv("TEST_ROLLUPS_PERIOD", "3840")
    profile = RollupProfile.load(
        _write(
            tmp_path / "profile.yaml",
            {
                "policy": {"oracle": {"period_seconds": "${TEST_ROLLUPS_PERIOD}", "runs_buffer": 3}},
                "wiring": {
                    "store_dsn": "${TEST_ROLLUPS_DSN}",
                    "event_bus": {"root": str(tmp_path / "bus"), "topics": ["t.v1", "t.v2"]},
                },
            },
        )
    )
    assert profile.wiring.store_dsn == str(tmp_path / "x.db")
    assert profile.policy.oracle.period_seconds == 3840
    assert profile.policy.oracle.runs_buffer == 3
    assert profile.wiring.event_bus_topics == ["t.v1", "t.v2"]


def test_store_dsn_falls_back_to_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROLLUPS_STORE_DSN", "memory://")
    profile = RollupProfile.from_mapping({"wiring": {"event_bus": {"topics": ["t.v1"]}}})
    assert profile.wiring.store_dsn == "memory://"


@pytest.mark.parametrize(
    "payload",
    [
        {"wiring": {"event_bus": {"topics": []}}},
        {"policy": {"oracle": {"period_seconds": 0}}, "wiring": {"event_bus": {"topics": ["t"]}}},
        {"policy": {"oracle": {"runs_buffer": -1}}, "wiring": {"event_bus": {"topics": ["t"]}}},
        {"policy": {"oracle": {"period_seconds": "daily"}}, "wiring": {"event_bus": {"topics": ["t"]}}},
        {"policy": {"max_id_lookups": 0}, "wiring": {"event_bus": {"topics": ["t"]}}},
        {"wiring": {"poll_max_records": 0, "event_bus": {"topics": ["t"]}}},
    ],
)
def test_invalid_profiles_fail_closed(payload: dict[str, object]) -> None:
    with pytest.raises(RollupConfigError):
        RollupProfile.from_mapping(payload)
