"""
Aggregator (group-by-category totals)
=====================================

One pass over the events, keeping a map from category key -> accumulator,
then the map is materialized into a list of `CategoryAggregate`.

Example:
- 3 "tstm wind" events with 1, 2 and 0 fatalities give one aggregate with
  fatalities=3.

Categories exist only if at least one event carries them. Missing numeric
fields count as zero. The output order is first-seen order, which the ranker
uses to break ties.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List

from .models import CategoryAggregate, StormEvent


@dataclass
class _Accumulator:
    fatalities: int = 0
    injuries: int = 0
    property_damage: float = 0.0
    crop_damage: float = 0.0
    events: int = 0

    def add(self, e: StormEvent) -> None:
        self.fatalities += e.fatalities or 0
        self.injuries += e.injuries or 0
        self.property_damage += e.property_damage or 0.0
        self.crop_damage += e.crop_damage or 0.0
        self.events += 1


def by_category(e: StormEvent) -> str:
    """Group key: the normalized category (falls back to raw if unprepared)."""
    return e.category if e.category is not None else e.raw_category


def by_raw_category(e: StormEvent) -> str:
    return e.raw_category


def aggregate_by_category(
    events: Iterable[StormEvent],
    key: Callable[[StormEvent], str] = by_category,
) -> List[CategoryAggregate]:
    """Sum casualties and damages per category key."""
    acc: Dict[str, _Accumulator] = {}
    for e in events:
        acc.setdefault(key(e), _Accumulator()).add(e)
    return [
        CategoryAggregate(
            category=k,
            fatalities=a.fatalities,
            injuries=a.injuries,
            property_damage=a.property_damage,
            crop_damage=a.crop_damage,
            events=a.events,
        )
        for k, a in acc.items()
    ]


def merge_aggregates(*parts: Iterable[CategoryAggregate]) -> List[CategoryAggregate]:
    """Combine aggregates computed over separate shards of the events.

    Each category appears once in the result, in first-seen order across
    `parts`.
    """
    acc: Dict[str, _Accumulator] = {}
    for part in parts:
        for agg in part:
            a = acc.setdefault(agg.category, _Accumulator())
            a.fatalities += agg.fatalities
            a.injuries += agg.injuries
            a.property_damage += agg.property_damage
            a.crop_damage += agg.crop_damage
            a.events += agg.events
    return [CategoryAggregate(category=k, **vars(a)) for k, a in acc.items()]
