# stdlib
import math
from datetime import date
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
# thirdpartylib
import numpy as np
import pandas as pd
# projectlib
from smart_grid_insight.data.schemas import Column, ConsumptionRecord
from smart_grid_insight.config.constants import (
    DAILY_MAX_GAP_DAYS,
    MONTHLY_MAX_GAP_DAYS,
    GRANULARITY_SAMPLE_GAPS,
    SYNTHETIC_SEASONAL_AMPLITUDE,
)
from smart_grid_insight.utils.dates import month_start
from smart_grid_insight.utils.logging import Logger, resolve_logger
from smart_grid_insight.utils.numeric import round_half_up
from smart_grid_insight.utils.typing import Granularity

def gap_days(dates: Sequence[date]) -> List[int]:
    """Day differences between consecutive entries of sorted ``dates``."""
    return [(b - a).days for a, b in zip(dates[:-1], dates[1:])]

def classify_gap(median: float) -> Granularity:
    """Map a median sample gap in days to a granularity."""
    if median <= DAILY_MAX_GAP_DAYS:
        return "daily"
    if median <= MONTHLY_MAX_GAP_DAYS:
        return "monthly"
    return "yearly"

def detect_granularity(
        dates: Iterable[date],
        max_gaps: int = GRANULARITY_SAMPLE_GAPS,
    ) -> Tuple[Granularity, Optional[float]]:
    """
    Infer the sampling granularity of a set of dates.

    The dates are sorted and the gaps between the first ``max_gaps``
    consecutive pairs are measured in days. The median gap is the
    element at index ``n // 2`` of the sorted gaps, so the result is
    always an observed gap.

    Parameters
    ----------
    dates : Iterable[date]
        Sample dates in any order.
    max_gaps : int, default GRANULARITY_SAMPLE_GAPS
        Number of leading gaps inspected.

    Returns
    -------
    Tuple[Granularity, Optional[float]]
        Detected granularity and the median gap. With fewer than two
        dates there is no gap to measure; ``("monthly", None)`` is
        returned.
    """
    ordered = sorted(dates)
    gaps = sorted(gap_days(ordered)[:max_gaps])
    if not gaps:
        return "monthly", None
    median = float(gaps[len(gaps) // 2])
    return classify_gap(median), median

def seasonal_multiplier(month_index: int) -> float:
    """Synthetic seasonal factor for a zero-based month index."""
    return 1 + SYNTHETIC_SEASONAL_AMPLITUDE * math.sin(
        2 * math.pi * month_index / 12
    )

def _aggregate_daily(
        records: Sequence[ConsumptionRecord]
    ) -> List[ConsumptionRecord]:
    """Average sub-monthly samples into one record per month."""
    df = pd.DataFrame({
        "year": [r.date.year for r in records],
        "month": [r.date.month for r in records],
        Column.CONSUMPTION.value: [r.consumption for r in records],
        Column.IS_PREDICTION.value: [r.is_prediction for r in records],
        Column.IS_INTERPOLATED.value: [r.is_interpolated for r in records],
    })
    grouped = (
        df
        .groupby(["year", "month"], sort=True)
        .agg(
            consumption=(Column.CONSUMPTION.value, "mean"),
            is_prediction=(Column.IS_PREDICTION.value, "any"),
            is_interpolated=(Column.IS_INTERPOLATED.value, "any"),
        )
        .reset_index()
    )
    return [
        ConsumptionRecord(
            date=date(int(row.year), int(row.month), 1),
            consumption=round_half_up(row.consumption),
            is_prediction=bool(row.is_prediction),
            is_interpolated=bool(row.is_interpolated),
        )
        for row in grouped.itertuples(index=False)
    ]

def _expand_yearly(
        records: Sequence[ConsumptionRecord]
    ) -> List[ConsumptionRecord]:
    """Spread yearly samples over twelve seasonally shaped months."""
    out: List[ConsumptionRecord] = []
    fractions = np.arange(12) / 12
    seasonal = np.array([seasonal_multiplier(m) for m in range(12)])
    for i, record in enumerate(records):
        # The final year has no successor and interpolates onto itself
        nxt = records[i + 1] if i + 1 < len(records) else record
        values = (
            record.consumption
            + (nxt.consumption - record.consumption) * fractions
        ) * seasonal
        for m, value in enumerate(values):
            out.append(ConsumptionRecord(
                date=date(record.date.year, m + 1, 1),
                consumption=round_half_up(float(value)),
                is_prediction=record.is_prediction,
            ))
    return out

def _one_per_year(records: Sequence[ConsumptionRecord]) -> bool:
    years = [r.date.year for r in records]
    return len(years) == len(set(years))

def _collapse_monthly(
        records: Sequence[ConsumptionRecord]
    ) -> List[ConsumptionRecord]:
    """
    Move monthly samples to the first of their month. Samples that share
    a month are averaged like daily data.
    """
    groups: Dict[date, List[ConsumptionRecord]] = {}
    for record in records:
        groups.setdefault(month_start(record.date), []).append(record)
    out: List[ConsumptionRecord] = []
    for key, members in groups.items():
        if len(members) == 1:
            out.append(replace(members[0], date=key))
        else:
            out.extend(_aggregate_daily(members))
    return out

def normalize_granularity(
        records: Iterable[ConsumptionRecord],
        *,
        logger: Optional[Logger] = None,
    ) -> List[ConsumptionRecord]:
    """
    Rewrite a series of arbitrary granularity to canonical monthly
    records.

    The granularity is detected from the median of the first ten sample
    gaps (see :func:`detect_granularity`) and the series is converted
    accordingly:

    - ``daily``: samples are grouped by calendar month and averaged,
      rounded half-up to an integer. A month is a prediction if any of
      its samples is.
    - ``yearly``: each yearly value is expanded into twelve months by
      linear interpolation towards the following year's value, shaped
      by the synthetic seasonal multiplier
      ``1 + 0.2 * sin(2 * pi * (month - 1) / 12)``. The last year
      interpolates onto itself. Sparse series with more than one
      sample in some calendar year (bimonthly, quarterly) are not
      expanded and take the monthly path instead.
    - ``monthly``: records pass through with their dates moved to the
      first of the month; records landing in the same month are
      averaged as for daily data.

    This function never raises; a single record is treated as monthly.

    Parameters
    ----------
    records : Iterable[ConsumptionRecord]
        Records with valid dates, in any order.
    logger : Logger, optional
        Receives the detected granularity at verbosity 1.

    Returns
    -------
    List[ConsumptionRecord]
        Month-start records sorted ascending by date.
    """
    log = resolve_logger(logger, "normalizer")
    ordered = sorted(records, key=lambda r: r.date)
    if not ordered:
        return []
    granularity, median = detect_granularity([r.date for r in ordered])
    log(
        f"Detected {granularity} granularity "
        f"(median gap {median} days, {len(ordered)} records)",
        verbosity=1,
    )

    match granularity:
        case "daily":
            return _aggregate_daily(ordered)
        case "yearly" if _one_per_year(ordered):
            return _expand_yearly(ordered)
        case _:
            return _collapse_monthly(ordered)
