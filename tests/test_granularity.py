"""Test granularity detection and monthly normalization."""
from datetime import date

import pytest

from conftest import make_series
from smart_grid_insight.data.schemas import ConsumptionRecord
from smart_grid_insight.preprocessing.granularity import (
    classify_gap,
    detect_granularity,
    gap_days,
    normalize_granularity,
    seasonal_multiplier,
)


def _dates(*isos):
    return [date.fromisoformat(d) for d in isos]


# ===================================================================
# Detection
# ===================================================================

class TestDetectGranularity:
    """Median-of-first-ten-gaps classification."""

    def test_monthly_series(self):
        result = detect_granularity(_dates("2024-01-01", "2024-02-01", "2024-03-01"))
        assert result == ("monthly", 31.0)

    def test_daily_series(self):
        dates = [date(2024, 1, d) for d in range(1, 6)]
        assert detect_granularity(dates) == ("daily", 1.0)

    def test_yearly_series(self):
        result = detect_granularity(_dates("2020-01-01", "2021-01-01", "2022-01-01"))
        assert result == ("yearly", 366.0)

    def test_median_uses_upper_middle_gap(self):
        """Gaps 5 and 40 give a median of 40, i.e. monthly."""
        result = detect_granularity(_dates("2024-01-01", "2024-01-06", "2024-02-15"))
        assert result == ("monthly", 40.0)

    def test_only_first_ten_gaps_are_inspected(self):
        dates = [date(2024, 1, d) for d in range(1, 12)] + [date(2025, 6, 1)]
        granularity, median = detect_granularity(dates)
        assert granularity == "daily"
        assert median == 1.0

    def test_unsorted_input_is_sorted_first(self):
        dates = _dates("2024-03-01", "2024-01-01", "2024-02-01")
        assert detect_granularity(dates)[0] == "monthly"

    def test_single_date_has_no_median(self):
        assert detect_granularity(_dates("2024-01-01")) == ("monthly", None)

    def test_empty(self):
        assert detect_granularity([]) == ("monthly", None)

    def test_gap_boundaries(self):
        assert classify_gap(7) == "daily"
        assert classify_gap(8) == "monthly"
        assert classify_gap(45) == "monthly"
        assert classify_gap(46) == "yearly"

    def test_gap_days(self):
        assert gap_days(_dates("2024-01-01", "2024-01-03", "2024-02-01")) == [2, 29]


class TestSeasonalMultiplier:

    def test_known_points(self):
        assert seasonal_multiplier(0) == pytest.approx(1.0)
        assert seasonal_multiplier(3) == pytest.approx(1.2)
        assert seasonal_multiplier(9) == pytest.approx(0.8)


# ===================================================================
# Normalization
# ===================================================================

class TestNormalizeGranularity:
    """Conversion of daily, monthly and yearly input to monthly records."""

    def test_empty_input(self):
        assert normalize_granularity([]) == []

    def test_single_record_moves_to_month_start(self, series):
        result = normalize_granularity(series([("2024-03-15", 42)]))
        assert result == [ConsumptionRecord(date(2024, 3, 1), 42.0)]

    def test_same_month_samples_are_averaged(self, series):
        """Two samples 15 days apart collapse into one January record."""
        result = normalize_granularity(
            series([("2024-01-05", 10), ("2024-01-20", 20)])
        )
        assert result == [ConsumptionRecord(date(2024, 1, 1), 15.0)]

    def test_daily_average_rounds_half_up(self, series):
        records = series([
            ("2024-01-30", 10),
            ("2024-01-31", 20),
            ("2024-02-01", 30),
        ]) + [ConsumptionRecord(date(2024, 2, 2), 41.0, is_prediction=True)]
        result = normalize_granularity(records)
        assert [r.date for r in result] == [date(2024, 1, 1), date(2024, 2, 1)]
        assert [r.consumption for r in result] == [15.0, 36.0]
        assert [r.is_prediction for r in result] == [False, True]

    def test_monthly_dates_are_canonicalized(self, series):
        result = normalize_granularity(
            series([("2024-01-15", 1), ("2024-02-15", 2), ("2024-03-15", 3)])
        )
        assert [r.date.day for r in result] == [1, 1, 1]
        assert [r.consumption for r in result] == [1.0, 2.0, 3.0]

    def test_output_is_sorted(self, series):
        result = normalize_granularity(
            series([("2024-03-01", 3), ("2024-01-01", 1), ("2024-02-01", 2)])
        )
        assert [r.date.month for r in result] == [1, 2, 3]

    def test_yearly_expansion(self, series):
        result = normalize_granularity(
            series([("2020-01-01", 1200), ("2021-01-01", 2400)])
        )
        assert len(result) == 24
        first, second = result[:12], result[12:]
        assert all(r.date.year == 2020 for r in first)
        assert [r.date.month for r in first] == list(range(1, 13))
        # (1200 + 1200 * m / 12) * (1 + 0.2 * sin(2 * pi * m / 12))
        assert first[0].consumption == 1200.0
        assert first[3].consumption == 1800.0
        assert first[6].consumption == 1800.0
        assert first[9].consumption == 1680.0
        # the last year interpolates onto itself
        assert second[0].consumption == 2400.0
        assert second[3].consumption == 2880.0
        assert second[9].consumption == 1920.0

    def test_yearly_expansion_keeps_prediction_flag(self):
        records = [
            ConsumptionRecord(date(2020, 1, 1), 1200.0),
            ConsumptionRecord(date(2021, 1, 1), 1200.0, is_prediction=True),
        ]
        result = normalize_granularity(records)
        assert not any(r.is_prediction for r in result[:12])
        assert all(r.is_prediction for r in result[12:])

    def test_idempotent_on_monthly_output(self, series):
        once = normalize_granularity(
            series([(f"2024-01-{d:02d}", d) for d in range(1, 32)])
        )
        assert normalize_granularity(once) == once

    def test_bimonthly_series_keeps_observations(self, series):
        """A 61-day median gap is not yearly data when years repeat."""
        result = normalize_granularity(series([
            ("2024-01-01", 100),
            ("2024-03-01", 300),
            ("2024-05-01", 500),
            ("2024-07-01", 700),
        ]))
        assert [(r.date.month, r.consumption) for r in result] == [
            (1, 100.0), (3, 300.0), (5, 500.0), (7, 700.0),
        ]

    def test_quarterly_series_keeps_observations(self, series):
        result = normalize_granularity(series([
            ("2023-10-15", 40),
            ("2024-01-15", 10),
            ("2024-04-15", 20),
            ("2024-07-15", 30),
        ]))
        assert [r.date for r in result] == [
            date(2023, 10, 1),
            date(2024, 1, 1),
            date(2024, 4, 1),
            date(2024, 7, 1),
        ]
        assert [r.consumption for r in result] == [40.0, 10.0, 20.0, 30.0]

    def test_one_record_per_month(self, series):
        result = normalize_granularity(series([
            ("2024-01-01", 1), ("2024-03-01", 3), ("2024-05-01", 5),
        ]))
        assert len({r.date for r in result}) == len(result)

    def test_idempotent_on_sparse_daily_input(self, series):
        """Daily samples in three far-apart months collapse once."""
        records = series(
            [(f"2024-{m:02d}-{d:02d}", 10 * m + d) for m in (1, 4, 7) for d in (1, 2, 3)]
        )
        once = normalize_granularity(records)
        assert [(r.date.month, r.consumption) for r in once] == [
            (1, 12.0), (4, 42.0), (7, 72.0),
        ]
        assert normalize_granularity(once) == once

    def test_idempotent_on_yearly_output(self, series):
        once = normalize_granularity(
            series([("2020-01-01", 1200), ("2021-01-01", 2400)])
        )
        assert normalize_granularity(once) == once

    def test_does_not_mutate_input(self, series):
        records = series([("2024-01-15", 1), ("2024-02-15", 2)])
        snapshot = list(records)
        normalize_granularity(records)
        assert records == snapshot

    def test_logs_detected_granularity(self, series, chatty, capsys):
        normalize_granularity(
            series([("2024-01-01", 1), ("2024-02-01", 2)]), logger=chatty
        )
        out = capsys.readouterr().out
        assert "[normalizer]" in out
        assert "monthly" in out
