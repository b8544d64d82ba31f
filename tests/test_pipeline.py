"""Test tabular loading and the upload pipeline."""
from datetime import date, datetime

import pandas as pd
import polars as pl
import pytest

from conftest import monthly
from smart_grid_insight.data.loaders import (
    find_column,
    read_rows,
    records_from_frame,
    records_to_frame,
)
from smart_grid_insight.data.schemas import ConsumptionRecord
from smart_grid_insight.models.forecasting import NumpyRandomSource
from smart_grid_insight.pipeline import (
    ForecastCache,
    NoValidDataError,
    ScanResult,
    SecurityScanError,
    UploadError,
    ValidationFailedError,
    build_dashboard_series,
    process_upload,
)

PASSED = ScanResult(passed=True)


@pytest.fixture
def upload_frame():
    """Parsed CSV rows with one bad date and one bad value."""
    return pl.DataFrame({
        "Date": [
            "2024-01-01",
            "not-a-date",
            "2024-02-15",
            "2024-03-01",
            "2024-04-01",
            "2024-05-01",
        ],
        "Consumption (kWh)": ["100", "50", "abc", "300", "400", "500"],
    })


# ===================================================================
# Loaders
# ===================================================================

class TestFindColumn:

    def test_matches_by_substring(self):
        columns = ["Meter", "Reading Date", "Usage kWh"]
        assert find_column(columns, ("date", "time")) == "Reading Date"
        assert find_column(columns, ("consumption", "kwh", "usage")) == "Usage kWh"

    def test_case_insensitive(self):
        assert find_column(["TIMESTAMP"], ("time",)) == "TIMESTAMP"

    def test_missing(self):
        assert find_column(["a", "b"], ("date",)) is None


class TestRecordsFromFrame:
    """Row-level parsing of polars and pandas frames."""

    def test_skips_malformed_rows(self, upload_frame):
        records = records_from_frame(upload_frame)
        assert records == [
            ConsumptionRecord(date(2024, 1, 1), 100.0),
            ConsumptionRecord(date(2024, 3, 1), 300.0),
            ConsumptionRecord(date(2024, 4, 1), 400.0),
            ConsumptionRecord(date(2024, 5, 1), 500.0),
        ]

    def test_logs_skipped_lines(self, upload_frame, chatty, capsys):
        records_from_frame(upload_frame, logger=chatty)
        out = capsys.readouterr().out
        assert "Error parsing date on line 3" in out
        assert "Error parsing consumption on line 4" in out
        assert "Parsed 4 of 6 rows" in out

    def test_pandas_frame(self):
        df = pd.DataFrame({
            "timestamp": [datetime(2024, 1, 1, 12), datetime(2024, 1, 2, 12)],
            "usage": [1.5, 2],
        })
        records = records_from_frame(df)
        assert [r.date for r in records] == [date(2024, 1, 1), date(2024, 1, 2)]
        assert [r.consumption for r in records] == [1.5, 2.0]

    def test_negative_values_are_kept(self):
        df = pl.DataFrame({"date": ["2024-01-01"], "consumption": ["-5"]})
        assert records_from_frame(df)[0].consumption == -5.0

    def test_missing_column(self):
        with pytest.raises(ValueError, match="date and consumption"):
            records_from_frame(pl.DataFrame({"date": ["2024-01-01"], "x": ["1"]}))


class TestFrameRoundTrip:

    def test_records_to_frame_schema(self):
        frame = records_to_frame([
            ConsumptionRecord(date(2024, 2, 1), 2, is_interpolated=True),
            ConsumptionRecord(date(2024, 1, 1), 1),
        ])
        assert frame.columns == [
            "date", "consumption", "is_prediction", "is_interpolated"
        ]
        assert frame.schema["date"] == pl.Date
        assert frame.schema["consumption"] == pl.Float64
        assert frame["date"].to_list() == [date(2024, 1, 1), date(2024, 2, 1)]
        assert frame["is_interpolated"].to_list() == [False, True]

    def test_read_rows(self, tmp_path):
        path = tmp_path / "meter.csv"
        path.write_text("date,consumption\n2024-01-01,10\n2024-02-01,x\n")
        frame = read_rows(path)
        assert frame.dtypes == [pl.String, pl.String]
        assert len(records_from_frame(frame)) == 1

    def test_read_rows_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_rows(tmp_path / "absent.csv")


# ===================================================================
# Upload pipeline
# ===================================================================

class TestProcessUpload:
    """Scan gate, parsing, validation and normalization."""

    def test_failed_scan(self, upload_frame):
        with pytest.raises(SecurityScanError, match="infected"):
            process_upload(upload_frame, ScanResult(False, "infected"))

    def test_failed_scan_default_message(self, upload_frame):
        with pytest.raises(SecurityScanError, match="security scan"):
            process_upload(upload_frame, ScanResult(False))

    def test_clean_monthly_series(self, upload_frame):
        upload = process_upload(upload_frame, PASSED)
        assert [r.date for r in upload.records] == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 3, 1),
            date(2024, 4, 1),
            date(2024, 5, 1),
        ]
        assert upload.records[1].consumption == 200.0
        assert upload.records[1].is_interpolated
        assert upload.report.is_valid

    def test_daily_pandas_upload(self):
        df = pd.DataFrame({
            "Date": pd.to_datetime([
                "2024-01-01", "2024-01-02", "2024-01-03",
                "2024-02-01", "2024-02-02",
            ]),
            "Consumption": [10, 20, 30, 40, 50],
        })
        upload = process_upload(df, PASSED)
        assert [(r.date, r.consumption) for r in upload.records] == [
            (date(2024, 1, 1), 20.0),
            (date(2024, 2, 1), 45.0),
        ]

    def test_bimonthly_upload_keeps_observations(self):
        frame = pl.DataFrame({
            "date": ["2024-01-01", "2024-03-01", "2024-05-01", "2024-07-01"],
            "consumption": ["100", "300", "500", "700"],
        })
        upload = process_upload(frame, PASSED)
        assert [(r.date.month, r.consumption, r.is_interpolated) for r in upload.records] == [
            (1, 100.0, False),
            (2, 200.0, True),
            (3, 300.0, False),
            (4, 400.0, True),
            (5, 500.0, False),
            (6, 600.0, True),
            (7, 700.0, False),
        ]

    def test_records_are_accepted_directly(self):
        upload = process_upload(monthly(2024, [1, 2, 3]), PASSED)
        assert len(upload.records) == 3

    def test_missing_columns(self):
        with pytest.raises(UploadError, match="date and consumption"):
            process_upload(pl.DataFrame({"when": ["x"], "kwh": ["1"]}), PASSED)

    def test_no_valid_rows(self):
        frame = pl.DataFrame({"date": ["bad", "worse"], "kwh": ["1", "2"]})
        with pytest.raises(NoValidDataError):
            process_upload(frame, PASSED)

    def test_validation_failure_carries_report(self):
        frame = pl.DataFrame({
            "date": ["2024-01-01", "2024-02-01"],
            "consumption": ["10", "-5"],
        })
        with pytest.raises(ValidationFailedError) as excinfo:
            process_upload(frame, PASSED)
        assert not excinfo.value.report.is_valid
        assert str(excinfo.value).startswith("Data validation failed:")

    def test_errors_share_a_base_class(self):
        assert issubclass(SecurityScanError, UploadError)
        assert issubclass(ValidationFailedError, UploadError)
        assert issubclass(UploadError, ValueError)


class TestBuildDashboardSeries:
    """Forecast extension and caching."""

    def test_without_profile(self, flat_two_years):
        series = build_dashboard_series(list(reversed(flat_two_years)), None, 12)
        assert series == flat_two_years

    def test_extends_history(self, flat_two_years, still):
        series = build_dashboard_series(flat_two_years, "GRU", 6, rng=still)
        assert len(series) == 30
        assert series[:24] == flat_two_years
        assert all(r.is_prediction for r in series[24:])

    def test_cache_reuses_forecast(self, flat_two_years):
        cache = ForecastCache()
        first = build_dashboard_series(
            flat_two_years, "DeepAR", 12, cache=cache, rng=NumpyRandomSource(1)
        )
        second = build_dashboard_series(
            flat_two_years, "DeepAR", 12, cache=cache, rng=NumpyRandomSource(2)
        )
        assert first == second
        assert (cache.hits, cache.misses, len(cache)) == (1, 1, 1)

    def test_cache_keys_differ_by_profile(self, flat_two_years, still):
        cache = ForecastCache()
        build_dashboard_series(flat_two_years, "GRU", 3, cache=cache, rng=still)
        build_dashboard_series(flat_two_years, "NBEATS", 3, cache=cache, rng=still)
        assert len(cache) == 2
        assert ForecastCache.make_key(flat_two_years, "GRU", 3) in cache
        cache.clear()
        assert len(cache) == 0

    def test_combined_series_can_be_passed_back(self, flat_two_years, still):
        series = build_dashboard_series(flat_two_years, "GRU", 6, rng=still)
        again = build_dashboard_series(series, "GRU", 6, rng=still)
        assert again == series
