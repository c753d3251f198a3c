"""
Tests for loading storm data files.
"""

import pytest

from stormie.engine import run_analysis
from stormie.errors import LoadError
from stormie.loader import load_storm_csv
from stormie.models import ColumnMap

from conftest import HEADER, SAMPLE_ROWS


class TestLoadStormCsv:

    def test_loads_bz2(self, write_storm_file):
        events = load_storm_csv(write_storm_file())
        assert len(events) == len(SAMPLE_ROWS)
        first = events[0]
        assert first.event_id == 0
        assert first.raw_category == "TSTM WIND"
        assert first.fatalities == 1
        assert first.injuries == 0
        assert first.prop_mantissa == 10.0
        assert first.prop_exp == "K"
        assert first.crop_exp == ""
        # derived fields are filled later by the engine
        assert first.category is None

    def test_quoted_multiline_cells(self, write_storm_file):
        events = load_storm_csv(write_storm_file())
        assert [e.raw_category for e in events] == ["TSTM WIND", "tstm wind", "FLOOD", "Frost/Freeze"]

    def test_empty_numeric_cell_is_none(self, write_storm_file):
        frost = load_storm_csv(write_storm_file())[3]
        assert frost.injuries is None
        assert frost.crop_mantissa == 2.5
        assert frost.crop_exp == "k"

    @pytest.mark.parametrize("name", ["StormData.csv", "StormData.csv.gz"])
    def test_other_compressions(self, write_storm_file, name):
        events = load_storm_csv(write_storm_file(name=name))
        assert len(events) == len(SAMPLE_ROWS)

    def test_custom_column_names(self, write_storm_file):
        header = ["TYPE", "DEATHS", "HURT", "PD", "PDX", "CD", "CDX"]
        path = write_storm_file(rows=[["HAIL", "1", "2", "3", "K", "4", "M"]], header=header)
        cols = ColumnMap(category="TYPE", fatalities="DEATHS", injuries="HURT",
                         prop_mantissa="PD", prop_exp="PDX", crop_mantissa="CD", crop_exp="CDX")
        (e,) = load_storm_csv(path, columns=cols)
        assert (e.raw_category, e.fatalities, e.injuries) == ("HAIL", 1, 2)
        assert (e.prop_mantissa, e.prop_exp, e.crop_mantissa, e.crop_exp) == (3.0, "K", 4.0, "M")

    def test_header_only(self, write_storm_file):
        assert load_storm_csv(write_storm_file(rows=[])) == []


class TestLoadErrors:

    def test_missing_file(self, tmp_path):
        path = tmp_path / "nope.csv.bz2"
        with pytest.raises(LoadError) as exc:
            load_storm_csv(path)
        assert exc.value.path == str(path)
        assert "not found" in exc.value.reason
        assert str(path) in str(exc.value)

    def test_missing_column(self, write_storm_file):
        header = [h for h in HEADER if h != "CROPDMGEXP"]
        rows = [[c for h, c in zip(HEADER, r) if h != "CROPDMGEXP"] for r in SAMPLE_ROWS]
        with pytest.raises(LoadError, match="CROPDMGEXP"):
            load_storm_csv(write_storm_file(rows=rows, header=header))

    def test_long_row(self, write_storm_file):
        rows = [SAMPLE_ROWS[0], SAMPLE_ROWS[2] + ["extra"]]
        with pytest.raises(LoadError, match="expected 10 fields, saw 11"):
            load_storm_csv(write_storm_file(rows=rows))

    def test_short_row(self, write_storm_file):
        rows = [SAMPLE_ROWS[0], SAMPLE_ROWS[2][:5]]
        with pytest.raises(LoadError, match="saw 5"):
            load_storm_csv(write_storm_file(rows=rows))

    def test_non_numeric_count(self, write_storm_file):
        row = list(SAMPLE_ROWS[0])
        row[3] = "many"
        with pytest.raises(LoadError, match="FATALITIES"):
            load_storm_csv(write_storm_file(rows=[row]))

    def test_negative_mantissa(self, write_storm_file):
        row = list(SAMPLE_ROWS[0])
        row[5] = "-3"
        with pytest.raises(LoadError, match="negative"):
            load_storm_csv(write_storm_file(rows=[row]))

    def test_fractional_count(self, write_storm_file):
        row = list(SAMPLE_ROWS[0])
        row[4] = "1.5"
        with pytest.raises(LoadError, match="non-integer"):
            load_storm_csv(write_storm_file(rows=[row]))

    @pytest.mark.parametrize("index,value", [
        (3, "inf"), (4, "-Infinity"), (5, "Infinity"), (7, "inf"),
    ])
    def test_non_finite_number(self, write_storm_file, index, value):
        row = list(SAMPLE_ROWS[0])
        row[index] = value
        with pytest.raises(LoadError, match="non-finite"):
            load_storm_csv(write_storm_file(rows=[row]))

    def test_corrupt_archive(self, tmp_path):
        path = tmp_path / "StormData.csv.bz2"
        path.write_bytes(b"this is not bzip2 data")
        with pytest.raises(LoadError, match="unreadable"):
            load_storm_csv(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "StormData.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(LoadError, match="empty"):
            load_storm_csv(path)


class TestRunAnalysis:

    def test_file_to_rankings(self, write_storm_file):
        path = write_storm_file()
        analysis = run_analysis(path)
        assert analysis.dataset_path == str(path)
        top = analysis.top("fatalities", n=2)
        assert [(a.category, a.fatalities) for a in top] == [("tstm wind", 3), ("flood", 0)]
        crop = analysis.top("crop_damage", n=10)
        assert [(a.category, a.crop_damage) for a in crop] == [
            ("tstm wind", 1_000_000), ("frost freeze", 2500), ("flood", 0),
        ]
