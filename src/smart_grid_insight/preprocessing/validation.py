# stdlib
from collections import Counter
from datetime import date
from typing import Iterable, List, Optional, Tuple, Union
# projectlib
from smart_grid_insight.data.schemas import (
    Column,
    ConsumptionRecord,
    Finding,
    ValidationReport,
)
from smart_grid_insight.config.constants import SIGNIFICANT_GAP_FACTOR
from smart_grid_insight.preprocessing.granularity import (
    detect_granularity,
    gap_days,
)
from smart_grid_insight.utils.dates import parse_date
from smart_grid_insight.utils.logging import Logger, resolve_logger
from smart_grid_insight.utils.numeric import is_valid_consumption, to_consumption
from smart_grid_insight.utils.typing import RawRow

def _coerce(
        item: Union[ConsumptionRecord, RawRow]
    ) -> Tuple[Optional[date], Optional[float]]:
    """Extract a parsed date and numeric consumption from a row."""
    if isinstance(item, ConsumptionRecord):
        return parse_date(item.date), to_consumption(item.consumption)
    return (
        parse_date(item.get(Column.DATE.value)),
        to_consumption(item.get(Column.CONSUMPTION.value)),
    )

def _check_dates(parsed: List[Optional[date]]) -> Finding:
    bad = sum(d is None for d in parsed)
    if bad:
        return Finding("invalid", f"{bad} records have invalid dates")
    return Finding("valid", "All dates are valid")

def _check_consumption(values: List[Optional[float]]) -> Finding:
    bad = sum(not is_valid_consumption(v) for v in values)
    if bad:
        return Finding(
            "invalid",
            f"{bad} records have invalid consumption values "
            "(missing, NaN or negative)",
        )
    return Finding("valid", "All consumption values are valid")

def _check_duplicates(dates: List[date]) -> Finding:
    counts = Counter(dates)
    duplicates = sum(n - 1 for n in counts.values() if n > 1)
    if duplicates:
        return Finding("warn", f"{duplicates} duplicate dates found")
    return Finding("valid", "No duplicate dates")

def _check_continuity(dates: List[date]) -> List[Finding]:
    """Granularity re-detection followed by significant-gap analysis."""
    ordered = sorted(dates)
    granularity, median = detect_granularity(ordered)
    if median is None:
        return [Finding(
            "valid",
            "Too few records to detect granularity or gaps",
        )]
    findings = [Finding(
        "valid",
        f"Detected {granularity} data (median interval {median:g} days)",
    )]
    threshold = SIGNIFICANT_GAP_FACTOR * median
    significant = sum(gap > threshold for gap in gap_days(ordered))
    if significant:
        findings.append(Finding(
            "warn",
            f"{significant} significant gaps found "
            f"(longer than {threshold:g} days)",
        ))
    else:
        findings.append(Finding("valid", "No significant gaps in the series"))
    return findings

def validate_data(
        records: Iterable[Union[ConsumptionRecord, RawRow]],
        *,
        logger: Optional[Logger] = None,
    ) -> ValidationReport:
    """
    Check an uploaded series and summarize the result.

    The checks run in a fixed order and each contributes at least one
    finding:

    1. empty input (fails immediately, nothing else is checked),
    2. unparsable dates,
    3. missing, non-numeric, NaN, infinite or negative consumption,
    4. duplicate dates (warning),
    5. granularity re-detection on the first ten gaps (informational),
    6. significant gaps, i.e. longer than twice the median gap
       (warning).

    Only invalid dates and invalid consumption values make the series
    invalid; duplicates and gaps are advisory.

    Parameters
    ----------
    records : Iterable[ConsumptionRecord | Mapping]
        Records, or raw rows with ``date`` and ``consumption`` keys.
    logger : Logger, optional
        Receives the verdict at verbosity 1.

    Returns
    -------
    ValidationReport
        Ordered findings and the overall verdict.
    """
    log = resolve_logger(logger, "validator")
    rows = list(records)
    if not rows:
        return ValidationReport(
            is_valid=False,
            findings=[Finding("invalid", "No data to validate")],
        )

    parsed = [_coerce(row) for row in rows]
    dates = [d for d, _ in parsed]
    values = [v for _, v in parsed]
    valid_dates = [d for d in dates if d is not None]

    findings = [
        _check_dates(dates),
        _check_consumption(values),
        _check_duplicates(valid_dates),
        *_check_continuity(valid_dates),
    ]
    is_valid = not any(f.level == "invalid" for f in findings)
    log(
        f"Validated {len(rows)} records: "
        f"{'valid' if is_valid else 'invalid'}, "
        f"{sum(f.level == 'warn' for f in findings)} warnings",
        verbosity=1,
    )
    return ValidationReport(is_valid=is_valid, findings=findings)
