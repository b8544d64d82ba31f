"""
Upload orchestration.

This module sits between the dashboard's collaborators (file storage,
security scanning, the CSV/Excel parser) and the pure processing core.
It is the one place where conditions are turned into user-facing
errors: the core functions themselves return empty results instead of
raising.
"""

# stdlib
from dataclasses import dataclass
from typing import (
    Callable,
    Dict,
    Hashable,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)
# thirdpartylib
import polars as pl
import pandas as pd
# projectlib
from smart_grid_insight.data.schemas import ConsumptionRecord, ValidationReport
from smart_grid_insight.data.loaders import records_from_frame
from smart_grid_insight.preprocessing.granularity import normalize_granularity
from smart_grid_insight.preprocessing.interpolation import (
    interpolate_missing_months,
)
from smart_grid_insight.preprocessing.validation import validate_data
from smart_grid_insight.models.forecasting import (
    combine_series,
    generate_predictions,
)
from smart_grid_insight.utils.logging import Logger, resolve_logger
from smart_grid_insight.utils.typing import DataFrame, RandomSource


class UploadError(ValueError):
    """Base class for conditions reported back to the uploading user."""


class SecurityScanError(UploadError):
    pass


class NoValidDataError(UploadError):
    pass


class ValidationFailedError(UploadError):
    """Raised when validation fails; carries the full report."""

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        problems = "; ".join(
            f.message for f in report.findings if f.level == "invalid"
        )
        super().__init__(f"Data validation failed: {problems}")


@dataclass(frozen=True)
class ScanResult:
    """Verdict returned by the external file-scanning service."""
    passed: bool
    message: str = ""


@dataclass(frozen=True)
class ProcessedUpload:
    records: List[ConsumptionRecord]
    report: ValidationReport


class ForecastCache(object):
    """
    Key-value store for computed forecasts.

    Entries are never evicted; the cache lives as long as the
    dashboard session that owns it and keeps that session's forecast
    stable while the user switches between views.
    """

    def __init__(self) -> None:
        self._store: Dict[Hashable, List[ConsumptionRecord]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._store

    @staticmethod
    def make_key(
            historical: Sequence[ConsumptionRecord],
            profile: str,
            num_months: int,
        ) -> Tuple[Hashable, ...]:
        """Cache key derived from the profile, horizon and series."""
        ordered = sorted(historical, key=lambda r: r.date)
        return (profile, num_months, tuple(ordered))

    def get_or_compute(
            self,
            key: Hashable,
            compute: Callable[[], List[ConsumptionRecord]],
        ) -> List[ConsumptionRecord]:
        if key in self._store:
            self.hits += 1
        else:
            self.misses += 1
            self._store[key] = compute()
        return list(self._store[key])

    def clear(self) -> None:
        self._store.clear()


def _ensure_scanned(scan: ScanResult) -> None:
    if not scan.passed:
        raise SecurityScanError(
            scan.message or "File failed the security scan"
        )

def process_upload(
        source: Union[DataFrame, Iterable[ConsumptionRecord]],
        scan: ScanResult,
        *,
        logger: Optional[Logger] = None,
    ) -> ProcessedUpload:
    """
    Turn an uploaded, scanned file into a clean monthly series.

    The steps are:

    1. refuse files that failed the security scan,
    2. convert parsed rows to records (malformed rows are skipped),
    3. validate, halting on invalid dates or consumption values,
    4. normalize to monthly granularity and fill missing months.

    Parameters
    ----------
    source : pl.DataFrame, pd.DataFrame or Iterable[ConsumptionRecord]
        Parsed rows from the file parser, or records built elsewhere.
    scan : ScanResult
        Verdict of the security scan for the uploaded file.
    logger : Logger, optional
        Shared logger for the pipeline stages.

    Returns
    -------
    ProcessedUpload
        Gapless, date-sorted monthly records and the validation report
        (which may still carry warnings).

    Raises
    ------
    SecurityScanError
        If the scan did not pass.
    UploadError
        If the rows lack a date or consumption column.
    NoValidDataError
        If no usable rows remain after parsing.
    ValidationFailedError
        If validation finds invalid dates or consumption values.
    """
    log = resolve_logger(logger, "pipeline")
    _ensure_scanned(scan)
    if isinstance(source, (pl.DataFrame, pd.DataFrame)):
        try:
            records = records_from_frame(source, logger=logger)
        except ValueError as e:
            raise UploadError(str(e)) from e
    else:
        records = list(source)
    if not records:
        raise NoValidDataError("No valid data found in the file")

    report = validate_data(records, logger=logger)
    for line in report.report:
        log(line, verbosity=2)
    if not report.is_valid:
        raise ValidationFailedError(report)

    monthly = normalize_granularity(records, logger=logger)
    filled = interpolate_missing_months(monthly, logger=logger)
    filled.sort(key=lambda r: r.date)
    log(f"Processed upload with {len(filled)} entries", verbosity=1)
    return ProcessedUpload(records=filled, report=report)

def build_dashboard_series(
        historical: Sequence[ConsumptionRecord],
        profile: Optional[str],
        num_months: int,
        *,
        cache: Optional[ForecastCache] = None,
        rng: Optional[RandomSource] = None,
        logger: Optional[Logger] = None,
    ) -> List[ConsumptionRecord]:
    """
    Historical series extended with a forecast for ``profile``.

    Without a profile the historical series is returned sorted. With a
    cache, repeated requests for the same series, profile and horizon
    return the stored forecast instead of drawing new noise.
    """
    observed = [r for r in historical if not r.is_prediction]
    if profile is None:
        return combine_series(observed, [])

    def compute() -> List[ConsumptionRecord]:
        return generate_predictions(
            observed, num_months, profile, rng=rng, logger=logger
        )

    if cache is None:
        forecast = compute()
    else:
        key = ForecastCache.make_key(observed, profile, num_months)
        forecast = cache.get_or_compute(key, compute)
    return combine_series(observed, forecast)
