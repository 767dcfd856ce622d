from __future__ import annotations

from periodic_rollups.period_data.keys import (
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    actor_period_key,
    day_index,
    hour_index,
    period_start,
)


def test_day_and_hour_index_floor_the_timestamp() -> None:
    assert day_index(0) == 0
    assert day_index(86399) == 0
    assert day_index(86400) == 1
    assert hour_index(3599) == 0
    assert hour_index(3600) == 1
    assert hour_index(86400) == 24


def test_period_start_of_boundary_timestamp_is_the_timestamp() -> None:
    for timestamp in (86400, 5 * 86400):
        assert period_start(day_index(timestamp), SECONDS_PER_DAY) == timestamp
    assert period_start(hour_index(7200), SECONDS_PER_HOUR) == 7200
    assert period_start(1, 86400) == 86400


def test_actor_period_key_joins_actor_and_index() -> None:
    assert actor_period_key("0xabc", 18628) == "0xabc-18628"
    assert actor_period_key("0xabc", 0) == "0xabc-0"
