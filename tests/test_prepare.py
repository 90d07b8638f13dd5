"""
Cleaning Tests

Validates that the cleaner fails loud on bad values and never coerces.

Tests:
- "Not Available" -> NaN (never a number)
- Non-numeric value -> ParseError
- Label suffix removal anywhere in the description
- Invalid year-month dropped, not an error
- Duplicate (source, month) rows summed; all-NaN groups stay NaN
"""

import numpy as np
import pandas as pd
import pytest

from energy_forecast.errors import ParseError, SchemaError
from energy_forecast.prepare import (QBTU_TO_GWH, clean, list_sources,
                                     normalize_labels, parse_year_month,
                                     pivot_sources, total_series_label)


def _raw(rows):
    return pd.DataFrame(rows, columns=["Description", "YYYYMM", "Value"])


@pytest.mark.fail_loud
class TestSentinel:
    """The sentinel always maps to missing"""

    def test_not_available_scenario(self):
        raw = _raw([("Solar Energy Production", 201706, "Not Available")])

        cleaned = clean(raw)

        assert len(cleaned) == 1
        row = cleaned.iloc[0]
        assert row["source"] == "Solar"
        assert row["ds"] == pd.Timestamp("2017-06-01")
        assert np.isnan(row["gwh"])
        assert np.isnan(row["twh"])

    def test_sentinel_never_numeric(self):
        raw = _raw([
            ("Wind Energy Production", 201701, "Not Available"),
            ("Wind Energy Production", 201702, "0.1"),
            ("Geothermal Energy Production", 201701, " Not Available "),
        ])

        cleaned = clean(raw)

        wind = cleaned[cleaned["source"] == "Wind"].set_index("ds")["gwh"]
        assert np.isnan(wind[pd.Timestamp("2017-01-01")])
        assert wind[pd.Timestamp("2017-02-01")] == pytest.approx(0.1 * QBTU_TO_GWH)
        assert cleaned[cleaned["source"] == "Geothermal"]["gwh"].isna().all()

    def test_non_numeric_raises(self):
        raw = _raw([
            ("Solar Energy Production", 201701, "0.01"),
            ("Solar Energy Production", 201702, "NOT_A_NUMBER"),
        ])

        with pytest.raises(ParseError, match="NOT_A_NUMBER"):
            clean(raw)

    def test_parse_error_names_the_record(self):
        raw = _raw([("Hydroelectric Power Production", 201702, "n/a")])

        with pytest.raises(ParseError, match="Hydroelectric Power Production"):
            clean(raw)

    def test_empty_value_raises(self):
        """Only the exact sentinel means missing; blanks are errors"""
        raw = _raw([("Solar Energy Production", 201702, "")])

        with pytest.raises(ParseError):
            clean(raw)

    @pytest.mark.parametrize("value", ["inf", "-inf", "Infinity", "-Infinity"])
    def test_infinite_value_raises(self, value):
        raw = _raw([("Solar Energy Production", 201702, value)])

        with pytest.raises(ParseError, match="201702|Solar Energy Production"):
            clean(raw)

    def test_parse_error_is_value_error(self):
        raw = _raw([("Solar Energy Production", 201702, "abc")])

        with pytest.raises(ValueError):
            clean(raw)


class TestLabels:
    """Suffix words are removed anywhere, not trimmed from the end"""

    @pytest.mark.parametrize("description,expected", [
        ("Solar Energy Production", "Solar"),
        ("Nuclear Electric Power Production", "Nuclear"),
        ("Hydroelectric Power Production", "Hydroelectric"),
        ("Natural Gas (Dry) Production", "Natural Gas"),
        ("Natural Gas Plant Liquids Production", "Natural Gas"),
        ("Total Primary Energy Production", "Total Primary"),
        ("Coal Production", "Coal"),
    ])
    def test_normalize(self, description, expected):
        assert normalize_labels(pd.Series([description])).iloc[0] == expected

    def test_custom_suffixes(self):
        labels = normalize_labels(pd.Series(["Solar Energy Production"]), suffixes=(" Production",))

        assert labels.iloc[0] == "Solar Energy"

    def test_clean_uses_custom_suffixes(self):
        raw = _raw([("Solar Energy Production", 201701, "0.01")])

        cleaned = clean(raw, suffixes=(" Production",))

        assert cleaned["source"].tolist() == ["Solar Energy"]

    def test_total_series_label(self):
        assert total_series_label() == "Total Primary"


class TestDates:
    """YYYYMM -> first day of month; invalid months dropped"""

    def test_first_of_month(self):
        parsed = parse_year_month(pd.Series([201706, "199001"]))

        assert parsed.tolist() == [pd.Timestamp("2017-06-01"), pd.Timestamp("1990-01-01")]

    def test_annual_total_month_13_dropped(self):
        raw = _raw([
            ("Solar Energy Production", 201712, "0.01"),
            ("Solar Energy Production", 201713, "0.12"),
        ])

        cleaned = clean(raw)

        assert len(cleaned) == 1
        assert cleaned["ds"].iloc[0] == pd.Timestamp("2017-12-01")

    def test_garbage_month_dropped_not_error(self):
        raw = _raw([
            ("Solar Energy Production", "2017XX", "0.01"),
            ("Solar Energy Production", 201801, "0.02"),
        ])

        cleaned = clean(raw)

        assert cleaned["ds"].tolist() == [pd.Timestamp("2018-01-01")]


class TestUnitsAndAggregation:
    """BTU -> GWh/TWh and summed duplicates"""

    def test_unit_conversion(self):
        raw = _raw([("Solar Energy Production", 201701, "1")])

        cleaned = clean(raw)

        assert cleaned["gwh"].iloc[0] == pytest.approx(293071.070172222215)
        assert cleaned["twh"].iloc[0] == pytest.approx(293.071070172222215)

    def test_twh_is_gwh_over_1000(self, raw_frame):
        cleaned = clean(raw_frame).dropna()

        np.testing.assert_allclose(cleaned["twh"], cleaned["gwh"] / 1000)

    def test_duplicates_are_summed_not_overwritten(self):
        raw = _raw([
            ("Natural Gas (Dry) Production", 201701, "1.5"),
            ("Natural Gas Plant Liquids Production", 201701, "0.5"),
        ])

        cleaned = clean(raw)

        assert len(cleaned) == 1
        assert cleaned["source"].iloc[0] == "Natural Gas"
        assert cleaned["gwh"].iloc[0] == pytest.approx(2.0 * QBTU_TO_GWH)

    def test_all_missing_group_sums_to_missing(self):
        raw = _raw([
            ("Solar Energy Production", 201701, "Not Available"),
            ("Solar Power Production", 201701, "Not Available"),
        ])

        cleaned = clean(raw)

        assert len(cleaned) == 1
        assert np.isnan(cleaned["gwh"].iloc[0])
        assert np.isnan(cleaned["twh"].iloc[0])

    def test_partially_missing_group_sums_available(self):
        raw = _raw([
            ("Solar Energy Production", 201701, "Not Available"),
            ("Solar Power Production", 201701, "0.25"),
        ])

        cleaned = clean(raw)

        assert cleaned["gwh"].iloc[0] == pytest.approx(0.25 * QBTU_TO_GWH)

    def test_aggregation_idempotence(self):
        """Duplicated rows clean to the same totals as pre-aggregated rows"""
        duplicated = _raw([
            ("Natural Gas (Dry) Production", 201701, "1.25"),
            ("Natural Gas Plant Liquids Production", 201701, "0.75"),
            ("Natural Gas (Dry) Production", 201702, "1.5"),
            ("Natural Gas Plant Liquids Production", 201702, "Not Available"),
            ("Coal Production", 201701, "2.0"),
        ])
        pre_aggregated = _raw([
            ("Natural Gas Production", 201701, "2.0"),
            ("Natural Gas Production", 201702, "1.5"),
            ("Coal Production", 201701, "2.0"),
        ])

        pd.testing.assert_frame_equal(clean(duplicated), clean(pre_aggregated))

    def test_input_not_mutated(self, raw_frame):
        before = raw_frame.copy()

        clean(raw_frame)

        pd.testing.assert_frame_equal(raw_frame, before)

    @pytest.mark.fail_loud
    def test_missing_columns_raise(self):
        with pytest.raises(SchemaError):
            clean(pd.DataFrame({"Description": ["x"], "Value": ["1"]}))


class TestSourceListing:
    """Helpers over the cleaned table"""

    def test_list_sources_excludes_totals(self, raw_frame):
        cleaned = clean(raw_frame)

        assert list_sources(cleaned) == ["Solar", "Wind"]
        assert "Total Primary" in list_sources(cleaned, include_totals=True)

    def test_pivot_sources(self, raw_frame):
        wide = pivot_sources(clean(raw_frame))

        assert set(wide.columns) == {"Solar", "Wind", "Total Primary"}
        assert wide.index.is_monotonic_increasing
