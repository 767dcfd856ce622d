"""Bus event contracts for the period-data projector."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from .checksum import is_hex_address
from .entities import ZERO_BD

EVENT_TYPES = {"activity", "totals", "oracle_report"}


class PeriodicEventContractError(Exception):
    def __init__(self, code: str, detail: str | None = None) -> None:
        super().__init__(code)
        self.code = code
        self.detail = detail


@dataclass(frozen=True)
class ActivityEvent:
    actor_from: str
    actor_to: str | None
    timestamp: int


@dataclass(frozen=True)
class TotalsEvent:
    timestamp: int
    value_total_a: Decimal
    value_total_b: Decimal


@dataclass(frozen=True)
class OracleReportEvent:
    timestamp: int
    reporter: str
    value_total_a: Decimal
    value_total_b: Decimal


PeriodicEvent = Union[ActivityEvent, TotalsEvent, OracleReportEvent]


def parse_event(record: dict[str, Any]) -> PeriodicEvent:
    event = unwrap_envelope(record)
    if event is None:
        raise PeriodicEventContractError("INVALID_ENVELOPE", "event must be a mapping")
    event_type = str(event.get("event_type") or "activity").strip().lower()
    if event_type not in EVENT_TYPES:
        raise PeriodicEventContractError("UNKNOWN_EVENT_TYPE", event_type)
    timestamp = _timestamp(event.get("ts"))
    if event_type == "activity":
        actor_to = event.get("to")
        return ActivityEvent(
            actor_from=_address(event.get("from"), field="from"),
            actor_to=None if actor_to in (None, "") else _address(actor_to, field="to"),
            timestamp=timestamp,
        )
    if event_type == "totals":
        return TotalsEvent(
            timestamp=timestamp,
            value_total_a=_decimal(event.get("value_total_a"), field="value_total_a", required=True),
            value_total_b=_decimal(event.get("value_total_b"), field="value_total_b", required=True),
        )
    return OracleReportEvent(
        timestamp=timestamp,
        reporter=_address(event.get("reporter"), field="reporter"),
        value_total_a=_decimal(event.get("value_total_a"), field="value_total_a"),
        value_total_b=_decimal(event.get("value_total_b"), field="value_total_b"),
    )


def unwrap_envelope(value: Any) -> dict[str, Any] | None:
    if not isinstance(value, dict):
        return None
    if isinstance(value.get("envelope"), dict):
        return value["envelope"]
    return value


def _timestamp(value: Any) -> int:
    if isinstance(value, bool) or value in (None, ""):
        raise PeriodicEventContractError("INVALID_TIMESTAMP", f"ts={value!r}")
    try:
        timestamp = int(value)
    except (TypeError, ValueError):
        raise PeriodicEventContractError("INVALID_TIMESTAMP", f"ts={value!r}") from None
    if timestamp < 0:
        raise PeriodicEventContractError("INVALID_TIMESTAMP", f"ts={value!r}")
    return timestamp


def _address(value: Any, *, field: str) -> str:
    if not is_hex_address(value):
        raise PeriodicEventContractError("INVALID_ADDRESS", f"{field}={value!r}")
    return str(value).lower()


def _decimal(value: Any, *, field: str, required: bool = False) -> Decimal:
    if value in (None, ""):
        if required:
            raise PeriodicEventContractError("INVALID_AMOUNT", f"{field} missing")
        return ZERO_BD
    if isinstance(value, bool):
        raise PeriodicEventContractError("INVALID_AMOUNT", f"{field}={value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise PeriodicEventContractError("INVALID_AMOUNT", f"{field}={value!r}") from None
    if not amount.is_finite():
        raise PeriodicEventContractError("INVALID_AMOUNT", f"{field}={value!r}")
    return amount
