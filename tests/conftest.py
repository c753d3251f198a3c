"""
Shared fixtures: storm event factories and small on-disk storm data files.
"""

import bz2
import csv
import gzip

import pytest
import structlog

from stormie.models import StormEvent

HEADER = [
    "STATE__", "BGN_DATE", "EVTYPE", "FATALITIES", "INJURIES",
    "PROPDMG", "PROPDMGEXP", "CROPDMG", "CROPDMGEXP", "REMARKS",
]

SAMPLE_ROWS = [
    ["1.00", "4/18/1950 0:00:00", "TSTM WIND", "1.00", "0.00", "10.00", "K", "0.00", "", "Trees down"],
    ["1.00", "4/18/1950 0:00:00", "tstm wind", "2.00", "3.00", "5.00", "K", "1.00", "M", "Power lines down\nacross the county"],
    ["2.00", "2/20/1951 0:00:00", "FLOOD", "0.00", "0.00", "1.00", "M", "0.00", "", ""],
    ["2.00", "1/3/1952 0:00:00", "Frost/Freeze", "0", "", "0", "", "2.5", "k", ""],
]


@pytest.fixture(autouse=True)
def _reset_structlog():
    """The CLI configures structlog globally; undo it after every test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_event():
    """Factory for raw (unprepared) StormEvent records."""
    counter = {"next": 0}

    def _make(category, fatalities=0, injuries=0, propdmg=0.0, propdmgexp="",
              cropdmg=0.0, cropdmgexp=""):
        e = StormEvent(
            event_id=counter["next"],
            raw_category=category,
            fatalities=fatalities,
            injuries=injuries,
            prop_mantissa=propdmg,
            prop_exp=propdmgexp,
            crop_mantissa=cropdmg,
            crop_exp=cropdmgexp,
        )
        counter["next"] += 1
        return e

    return _make


@pytest.fixture
def scenario_events(make_event):
    """The three-record tstm wind / flood example."""
    return [
        make_event("TSTM WIND", fatalities=1, propdmg=10, propdmgexp="K"),
        make_event("tstm wind", fatalities=2, propdmg=5, propdmgexp="K"),
        make_event("FLOOD", fatalities=0, propdmg=1, propdmgexp="M"),
    ]


@pytest.fixture
def write_storm_file(tmp_path):
    """Write rows to a storm data file; compression follows the file name."""

    def _write(rows=None, name="StormData.csv.bz2", header=None):
        path = tmp_path / name
        if name.endswith(".bz2"):
            opener = bz2.open
        elif name.endswith(".gz"):
            opener = gzip.open
        else:
            opener = open
        with opener(path, "wt", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(HEADER if header is None else header)
            w.writerows(SAMPLE_ROWS if rows is None else rows)
        return path

    return _write
