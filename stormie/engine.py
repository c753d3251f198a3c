"""
Core engine (STORMIE)
=====================

This is the heart of the project. The analysis is a straight pipeline:

1) Load dataset -> list of StormEvent records (immutable)
2) Prepare -> attach the normalized category and dollar damages to each event
3) Aggregate -> one CategoryAggregate per category
4) Rank -> top-N categories by one metric (stable, descending)
5) Report -> tables / charts / DOCX (see report.py)

Each stage runs to completion before the next one starts, and no stage feeds
back into an earlier one.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import csv
import json

import structlog

from .aggregate import aggregate_by_category, by_category, by_raw_category
from .damage import estimate_damage
from .dsa import take_top
from .errors import InvalidExponentError
from .loader import load_storm_csv
from .models import METRICS, CategoryAggregate, ColumnMap, StormEvent
from .normalize import category_cardinality, normalize_category

logger = structlog.get_logger(__name__)

ON_INVALID = ("raise", "skip")
GROUP_BY = ("normalized", "raw")

HEALTH_METRICS = ("fatalities", "injuries")
ECONOMIC_METRICS = ("property_damage", "crop_damage")


@dataclass(frozen=True)
class SkippedEvent:
    """An event dropped because one of its exponent codes is invalid."""
    event_id: int
    field: str
    code: str


# ---------------- Preparation ----------------
def _pair_is_valid(mantissa, code) -> bool:
    try:
        estimate_damage(mantissa, code)
    except InvalidExponentError:
        return False
    return True


def prepare_event(e: StormEvent) -> StormEvent:
    """Return a copy of `e` with category and damages filled in.

    Raises:
        InvalidExponentError: if either exponent code is not recognized.
    """
    return replace(
        e,
        category=normalize_category(e.raw_category),
        property_damage=estimate_damage(e.prop_mantissa, e.prop_exp),
        crop_damage=estimate_damage(e.crop_mantissa, e.crop_exp),
    )


def prepare_events(
    events: Sequence[StormEvent],
    on_invalid: str = "raise",
) -> Tuple[List[StormEvent], List[SkippedEvent]]:
    """Prepare every event.

    on_invalid="raise" aborts on the first invalid exponent code.
    on_invalid="skip" drops the offending events and reports them.
    """
    if on_invalid not in ON_INVALID:
        raise ValueError(f"on_invalid must be one of {ON_INVALID}")
    prepared: List[StormEvent] = []
    skipped: List[SkippedEvent] = []
    for e in events:
        try:
            prepared.append(prepare_event(e))
        except InvalidExponentError as err:
            if on_invalid == "raise":
                raise
            fname = "crop_exp" if _pair_is_valid(e.prop_mantissa, e.prop_exp) else "prop_exp"
            skipped.append(SkippedEvent(event_id=e.event_id, field=fname, code=err.code))
            logger.debug("Skipped record with invalid exponent code", event_id=e.event_id, field=fname, code=err.code)
    if skipped:
        logger.warning("Skipped records with invalid exponent codes", skipped=len(skipped),
                       codes=sorted({s.code for s in skipped}))
    logger.info("Prepared storm events", events=len(prepared), skipped=len(skipped))
    return prepared, skipped


# ---------------- Ranking ----------------
def _metric_key(metric: str) -> Callable[[CategoryAggregate], object]:
    m = metric.lower().strip()
    if m not in METRICS:
        raise ValueError(f"metric must be one of: {', '.join(METRICS)}")
    return lambda a: getattr(a, m)


def has_economic_damage(a: CategoryAggregate) -> bool:
    """True unless both damage totals are zero."""
    return a.property_damage > 0 or a.crop_damage > 0


def rank(
    aggregates: Sequence[CategoryAggregate],
    metric: str,
    n: int = 10,
    where: Optional[Callable[[CategoryAggregate], bool]] = None,
) -> List[CategoryAggregate]:
    """Top-`n` aggregates by `metric`, descending, ties in input order.

    `where` (optional) is applied once, before sorting and truncation.
    """
    key = _metric_key(metric)
    pool = [a for a in aggregates if where(a)] if where is not None else list(aggregates)
    return take_top(pool, n, key=key)


# ---------------- Analysis ----------------
@dataclass
class StormAnalysis:
    """Prepared events plus their per-category aggregates.

    The aggregates are computed once in `from_events`; every ranking is
    recomputed on demand from them.
    """
    events: List[StormEvent]
    aggregates: List[CategoryAggregate]
    skipped: List[SkippedEvent] = field(default_factory=list)
    group_by: str = "normalized"
    dataset_path: Optional[str] = None
    cardinality: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_events(
        cls,
        events: Sequence[StormEvent],
        *,
        on_invalid: str = "raise",
        group_by: str = "normalized",
        dataset_path: Optional[str] = None,
    ) -> "StormAnalysis":
        if group_by not in GROUP_BY:
            raise ValueError(f"group_by must be one of {GROUP_BY}")
        prepared, skipped = prepare_events(events, on_invalid=on_invalid)
        key = by_category if group_by == "normalized" else by_raw_category
        aggregates = aggregate_by_category(prepared, key=key)
        cardinality = category_cardinality(prepared)
        logger.info("Aggregated storm events", group_by=group_by, categories=len(aggregates),
                    raw_categories=cardinality["raw"], normalized_categories=cardinality["normalized"])
        return cls(
            events=prepared,
            aggregates=aggregates,
            skipped=skipped,
            group_by=group_by,
            dataset_path=dataset_path,
            cardinality=cardinality,
        )

    def top(self, metric: str, n: int = 10, where: Optional[Callable[[CategoryAggregate], bool]] = None) -> List[CategoryAggregate]:
        return rank(self.aggregates, metric, n=n, where=where)

    def health_rankings(self, n: int = 10) -> Dict[str, List[CategoryAggregate]]:
        """Top-n categories by fatalities and by injuries."""
        return {m: self.top(m, n) for m in HEALTH_METRICS}

    def economic_rankings(self, n: int = 10) -> Dict[str, List[CategoryAggregate]]:
        """Top-n categories by property and crop damage (zero-damage categories dropped)."""
        return {m: self.top(m, n, where=has_economic_damage) for m in ECONOMIC_METRICS}

    def all_rankings(self, n: int = 10) -> Dict[str, List[CategoryAggregate]]:
        out = self.health_rankings(n)
        out.update(self.economic_rankings(n))
        return out

    def totals(self) -> Dict[str, float]:
        """Dataset-wide sums, from the aggregates."""
        return {
            m: sum(getattr(a, m) for a in self.aggregates)
            for m in METRICS
        }

    # ---------------- Output operations ----------------
    def export_csv(self, path: str) -> None:
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["category"] + list(METRICS))
            for a in self.aggregates:
                w.writerow([a.category] + [getattr(a, m) for m in METRICS])

    def export_json(self, path: str) -> None:
        """Export the aggregates to a JSON file (list of objects)."""
        payload = [
            {"category": a.category, **{m: getattr(a, m) for m in METRICS}}
            for a in self.aggregates
        ]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)


def run_analysis(
    path: str,
    *,
    columns: Optional[ColumnMap] = None,
    on_invalid: str = "raise",
    group_by: str = "normalized",
) -> StormAnalysis:
    """Load `path` and build the analysis in one call."""
    events = load_storm_csv(path, columns=columns)
    return StormAnalysis.from_events(events, on_invalid=on_invalid, group_by=group_by, dataset_path=str(path))
