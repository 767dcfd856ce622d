from __future__ import annotations

import pytest

from periodic_rollups.period_data.incremental_ids import IncrementalIdResolver, IncrementalIdSearchError
from periodic_rollups.period_data.store import build_store
from periodic_rollups.period_data.entities import OracleReport


def _resolver(existing: set[int], **kwargs: object) -> tuple[IncrementalIdResolver, list[str]]:
    lookups: list[str] = []

    def exists(kind: str, entity_id: str) -> bool:
        lookups.append(entity_id)
        return kind == "OracleReport" and int(entity_id) in existing

    return IncrementalIdResolver(exists, **kwargs), lookups


def test_zero_estimate_returns_sentinels_without_probing() -> None:
    resolver, lookups = _resolver({1, 2})
    assert resolver.last_existing("OracleReport", 0) == "0"
    assert resolver.next_free("OracleReport", 0) == "1"
    assert lookups == []


def test_last_existing_walks_down_from_overestimate() -> None:
    resolver, lookups = _resolver({1, 2, 3})
    assert resolver.last_existing("OracleReport", 7) == "3"
    assert lookups == ["7", "6", "5", "4", "3"]


def test_exact_estimate_checks_once() -> None:
    resolver, lookups = _resolver({1, 2, 3})
    assert resolver.last_existing("OracleReport", 3) == "3"
    assert resolver.next_free("OracleReport", 3) == "4"
    assert lookups == ["3", "3"]


def test_empty_store_resolves_to_sentinels() -> None:
    resolver, _ = _resolver(set())
    assert resolver.last_existing("OracleReport", 5) == "0"
    assert resolver.next_free("OracleReport", 5) == "1"


@pytest.mark.parametrize("estimate", range(0, 12))
def test_next_free_is_last_existing_plus_one(estimate: int) -> None:
    resolver, _ = _resolver({1, 2, 3, 4, 5, 6})
    last = int(resolver.last_existing("OracleReport", estimate))
    assert resolver.next_free("OracleReport", estimate) == str(last + 1)
    assert last == min(estimate, 6)


def test_kind_is_part_of_the_lookup() -> None:
    resolver, _ = _resolver({1, 2})
    assert resolver.last_existing("Other", 2) == "0"


def test_negative_estimate_is_rejected() -> None:
    resolver, _ = _resolver({1})
    with pytest.raises(ValueError):
        resolver.last_existing("OracleReport", -1)


def test_bounded_search_raises_when_exhausted() -> None:
    resolver, lookups = _resolver({1}, max_lookups=3)
    with pytest.raises(IncrementalIdSearchError):
        resolver.last_existing("OracleReport", 10)
    assert len(lookups) == 3
    assert resolver.last_existing("OracleReport", 3) == "1"


def test_resolver_over_entity_store() -> None:
    store = build_store("memory://")
    for report_id in ("1", "2"):
        store.save(store.create(OracleReport.KIND, report_id))
    resolver = IncrementalIdResolver(store.exists)
    assert resolver.last_existing(OracleReport.KIND, 60) == "2"
    assert resolver.next_free(OracleReport.KIND, 60) == "3"
