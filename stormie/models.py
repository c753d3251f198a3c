"""
Data model (StormEvent, CategoryAggregate)
==========================================

Each row of the NOAA storm data file is converted into a `StormEvent` object.
We keep it immutable (`frozen=True`) so that:
- events cannot be accidentally modified after loading, and
- the derived fields (normalized category, dollar damages) are attached once,
  by building a new record with `dataclasses.replace`.

`CategoryAggregate` is one row of the per-category summary. `ColumnMap` says
which dataset columns feed which fields (names, never positions).
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ColumnMap:
    """Dataset column names for each StormEvent field (NOAA schema by default)."""
    category: str = "EVTYPE"
    fatalities: str = "FATALITIES"
    injuries: str = "INJURIES"
    prop_mantissa: str = "PROPDMG"
    prop_exp: str = "PROPDMGEXP"
    crop_mantissa: str = "CROPDMG"
    crop_exp: str = "CROPDMGEXP"

    def as_dict(self) -> dict:
        return {
            "category": self.category,
            "fatalities": self.fatalities,
            "injuries": self.injuries,
            "prop_mantissa": self.prop_mantissa,
            "prop_exp": self.prop_exp,
            "crop_mantissa": self.crop_mantissa,
            "crop_exp": self.crop_exp,
        }


@dataclass(frozen=True)
class StormEvent:
    """Immutable record for one storm data row.

    Numeric fields are None when the cell was empty; the aggregator counts
    them as zero. `category`, `property_damage` and `crop_damage` stay None
    until the event is prepared by the engine.
    """
    event_id: int
    raw_category: str
    fatalities: Optional[int] = None
    injuries: Optional[int] = None
    prop_mantissa: Optional[float] = None
    prop_exp: str = ""
    crop_mantissa: Optional[float] = None
    crop_exp: str = ""
    # derived
    category: Optional[str] = None
    # stored in US$
    property_damage: Optional[float] = None
    crop_damage: Optional[float] = None


@dataclass(frozen=True)
class CategoryAggregate:
    """Per-category totals. One instance per distinct category key."""
    category: str
    fatalities: int = 0
    injuries: int = 0
    property_damage: float = 0.0
    crop_damage: float = 0.0
    events: int = 0


# Fields of CategoryAggregate that can be ranked.
METRICS = ("fatalities", "injuries", "property_damage", "crop_damage", "events")

METRIC_LABELS = {
    "fatalities": "Fatalities",
    "injuries": "Injuries",
    "property_damage": "Property damage (US$)",
    "crop_damage": "Crop damage (US$)",
    "events": "Number of events",
}
