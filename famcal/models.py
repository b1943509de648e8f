"""
Value objects passed between the parser, the expander and the renderers.

Everything here is frozen: expansion never mutates an event, it builds
new Occurrence objects from it.
"""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawProperty:
    """One `NAME;PARAM=VAL:VALUE` content line inside a VEVENT."""
    name: str
    params: dict[str, str]
    value: str


@dataclass(frozen=True)
class RawEvent:
    """
    Property map for one VEVENT block.

    `properties` keeps the last line seen for each name. `exdate_lines`
    keeps every EXDATE line, since feeds repeat that property.
    """
    properties: dict[str, RawProperty] = field(default_factory=dict)
    exdate_lines: list[RawProperty] = field(default_factory=list)

    def value(self, name: str, default: str = "") -> str:
        prop = self.properties.get(name)
        return prop.value if prop is not None else default

    def params(self, name: str) -> dict[str, str]:
        prop = self.properties.get(name)
        return prop.params if prop is not None else {}


@dataclass(frozen=True)
class Instant:
    ts: int | None
    display: str


@dataclass(frozen=True)
class RRule:
    freq: str | None = None
    interval: int = 1
    until: str | None = None
    wkst: str = "MO"
    by_day: tuple[str, ...] = ()
    by_month_day: tuple[str, ...] = ()
    by_month: tuple[str, ...] = ()


@dataclass(frozen=True)
class NormalizedEvent:
    summary: str = ""
    uid: str = ""
    description: str = ""
    location: str = ""
    start_raw: str = ""
    end_raw: str = ""
    start: Instant = Instant(None, "")
    end: Instant = Instant(None, "")
    duration_seconds: int | None = None
    rrule: RRule | None = None
    exdates: tuple[int, ...] = ()
    color: str | None = None


@dataclass(frozen=True)
class Occurrence(NormalizedEvent):
    all_day: bool = False
    is_holiday: bool = False
    calendar_name: str | None = None

    @classmethod
    def from_event(cls, event: NormalizedEvent, start: Instant, end: Instant, all_day: bool) -> Occurrence:
        values = dict(vars(event))
        values.update(start=start, end=end, all_day=all_day)
        return cls(**values)
