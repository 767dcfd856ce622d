"""Entity records persisted through the entity store."""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, ClassVar

ZERO_BD = Decimal("0")
TOTALS_ID = ""


@dataclass
class Entity:
    KIND: ClassVar[str] = ""

    id: str

    @property
    def kind(self) -> str:
        return self.KIND

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {}
        for field in fields(self):
            if field.name == "id":
                continue
            value = getattr(self, field.name)
            record[field.name] = str(value) if isinstance(value, Decimal) else value
        return record

    @classmethod
    def from_record(cls, entity_id: str, record: dict[str, Any]) -> "Entity":
        values: dict[str, Any] = {}
        for field in fields(cls):
            if field.name == "id" or field.name not in record:
                continue
            raw = record[field.name]
            if field.type == "Decimal":
                values[field.name] = Decimal(str(raw))
            elif field.type == "int":
                values[field.name] = int(raw)
            else:
                values[field.name] = raw
        return cls(id=str(entity_id), **values)


@dataclass
class PeriodBucket(Entity):
    period_start: int = 0
    active_actors: int = 0
    value_total_a: Decimal = ZERO_BD
    value_total_b: Decimal = ZERO_BD
    event_count: int = 0


@dataclass
class DayBucket(PeriodBucket):
    KIND: ClassVar[str] = "DayBucket"


@dataclass
class HourBucket(PeriodBucket):
    KIND: ClassVar[str] = "HourBucket"


@dataclass
class ActorDayMarker(Entity):
    KIND: ClassVar[str] = "ActorDayMarker"


@dataclass
class ActorHourMarker(Entity):
    KIND: ClassVar[str] = "ActorHourMarker"


@dataclass
class GlobalTotals(Entity):
    KIND: ClassVar[str] = "Totals"

    value_total_a: Decimal = ZERO_BD
    value_total_b: Decimal = ZERO_BD


@dataclass
class OracleReport(Entity):
    KIND: ClassVar[str] = "OracleReport"

    timestamp: int = 0
    reporter: str = ""
    value_total_a: Decimal = ZERO_BD
    value_total_b: Decimal = ZERO_BD


@dataclass
class Checkpoint(Entity):
    KIND: ClassVar[str] = "Checkpoint"

    next_offset: int = 0


ENTITY_TYPES: dict[str, type[Entity]] = {
    entity_type.KIND: entity_type
    for entity_type in (
        DayBucket,
        HourBucket,
        ActorDayMarker,
        ActorHourMarker,
        GlobalTotals,
        OracleReport,
        Checkpoint,
    )
}


def entity_type(kind: str) -> type[Entity]:
    try:
        return ENTITY_TYPES[kind]
    except KeyError:
        raise KeyError(f"unknown entity kind: {kind}") from None
