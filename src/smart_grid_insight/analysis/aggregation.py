# stdlib
import calendar
from collections import defaultdict
from datetime import date
from typing import DefaultDict, Dict, Iterable, List, Optional, Tuple
# projectlib
from smart_grid_insight.data.schemas import (
    ConsumptionRecord,
    MonthExtreme,
    MonthlyBreakdown,
    YearlySummary,
)
from smart_grid_insight.config.constants import MAX_MONTHLY_CHANGE_PCT
from smart_grid_insight.utils.dates import month_start
from smart_grid_insight.utils.numeric import clamp, round_half_up

def percent_change(current: float, previous: Optional[float]) -> float:
    """Percentage change from ``previous``; 0 when it is missing or 0."""
    if not previous:
        return 0.0
    return (current - previous) / previous * 100

def _sorted(records: Iterable[ConsumptionRecord]) -> List[ConsumptionRecord]:
    return sorted(records, key=lambda r: r.date)

def generate_yearly_summary(
        records: Iterable[ConsumptionRecord]
    ) -> Dict[int, YearlySummary]:
    """
    Summarize consumption per calendar year.

    For every year present the total consumption, the highest and
    lowest month and the change against the previous calendar year are
    computed. Extremes keep the first occurrence in chronological order
    when values tie. The year-over-year change is rounded to two
    decimals and is 0 when the previous year is absent or totals 0.

    Records sharing a date are summed into the year's total; duplicate
    dates are reported by the validator rather than resolved here.

    Parameters
    ----------
    records : Iterable[ConsumptionRecord]
        Series in any order; historical and forecast records alike.

    Returns
    -------
    Dict[int, YearlySummary]
        Summaries keyed by year, in ascending year order.
    """
    totals: DefaultDict[int, float] = defaultdict(float)
    highest: Dict[int, ConsumptionRecord] = {}
    lowest: Dict[int, ConsumptionRecord] = {}
    for record in _sorted(records):
        year = record.date.year
        totals[year] += record.consumption
        if year not in highest or record.consumption > highest[year].consumption:
            highest[year] = record
        if year not in lowest or record.consumption < lowest[year].consumption:
            lowest[year] = record

    summary: Dict[int, YearlySummary] = {}
    for year in sorted(totals):
        change = percent_change(totals[year], totals.get(year - 1))
        summary[year] = YearlySummary(
            year=year,
            total_consumption=totals[year],
            year_over_year_change=round_half_up(change, 2),
            highest_month=MonthExtreme(
                month=calendar.month_name[highest[year].date.month],
                consumption=highest[year].consumption,
            ),
            lowest_month=MonthExtreme(
                month=calendar.month_name[lowest[year].date.month],
                consumption=lowest[year].consumption,
            ),
        )
    return summary

def _monthly_totals(
        records: Iterable[ConsumptionRecord]
    ) -> Dict[date, Tuple[float, bool, bool]]:
    """Consumption and flags per month start; colliding months summed."""
    out: Dict[date, Tuple[float, bool, bool]] = {}
    for r in records:
        key = month_start(r.date)
        value, pred, interp = out.get(key, (0.0, False, False))
        out[key] = (
            value + r.consumption,
            pred or r.is_prediction,
            interp or r.is_interpolated,
        )
    return out

def generate_monthly_breakdown(
        records: Iterable[ConsumptionRecord],
        year: int,
    ) -> List[MonthlyBreakdown]:
    """
    Twelve-month table for ``year`` with month-over-month changes.

    Each month's change is measured against the immediately preceding
    calendar month, so January is compared with December of the
    previous year when the series has it. Changes are clamped to
    +/-200% so near-zero baselines do not dominate the table. Months
    without data appear with zero consumption and ``is_prediction``
    set, marking them as placeholders rather than observations.
    """
    totals = _monthly_totals(records)
    previous: Optional[float] = None
    december = totals.get(date(year - 1, 12, 1))
    if december is not None:
        previous = december[0]

    rows: List[MonthlyBreakdown] = []
    for month in range(1, 13):
        key = date(year, month, 1)
        if key in totals:
            value, pred, interp = totals[key]
        else:
            value, pred, interp = 0.0, True, False
        change = clamp(
            percent_change(value, previous),
            -MAX_MONTHLY_CHANGE_PCT,
            MAX_MONTHLY_CHANGE_PCT,
        )
        rows.append(MonthlyBreakdown(
            date=key,
            month=month,
            month_name=calendar.month_name[month],
            consumption=value,
            change_percent=round_half_up(change, 2),
            is_prediction=pred,
            is_interpolated=interp,
        ))
        previous = value
    return rows

def available_years(records: Iterable[ConsumptionRecord]) -> List[int]:
    return sorted({r.date.year for r in records})

def filter_by_year(
        records: Iterable[ConsumptionRecord],
        year: Optional[int] = None,
    ) -> List[ConsumptionRecord]:
    """Sorted records, restricted to ``year`` when given."""
    ordered = _sorted(records)
    if year is None:
        return ordered
    return [r for r in ordered if r.date.year == year]

def split_series(
        records: Iterable[ConsumptionRecord]
    ) -> Tuple[List[ConsumptionRecord], List[ConsumptionRecord]]:
    """Separate a combined series into historical and forecast parts."""
    ordered = _sorted(records)
    historical = [r for r in ordered if not r.is_prediction]
    forecast = [r for r in ordered if r.is_prediction]
    return historical, forecast
