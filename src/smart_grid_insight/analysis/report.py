"""
Report payload assembly.

The exporter collaborator renders the dashboard snapshot and a yearly
consumption table to PDF. This module prepares everything it needs that
is derived from the series itself, so rendering stays a pure layout
concern.
"""

# stdlib
import calendar
from datetime import date
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
# projectlib
from smart_grid_insight.data.schemas import ConsumptionRecord
from smart_grid_insight.analysis.aggregation import percent_change
from smart_grid_insight.config.profiles import (
    ProfileMetrics,
    get_profile_metrics,
)
from smart_grid_insight.utils.numeric import round_half_up

REPORT_TITLE = "Smart Grid Electricity Consumption Report"

@dataclass(frozen=True)
class ReportRow:
    year: int
    consumption: float
    # None for the first year in the table
    yoy_change: Optional[float]
    highest_month: str


@dataclass(frozen=True)
class ReportPayload:
    title: str
    profile: str
    metrics: ProfileMetrics
    rows: List[ReportRow] = field(default_factory=list)
    generated_on: date = field(default_factory=date.today)


def build_report_table(records: Iterable[ConsumptionRecord]) -> List[ReportRow]:
    """
    One row per year present in the series, in ascending order.

    Unlike :func:`generate_yearly_summary`, the year-over-year change
    here compares against the previous year *in the table*, so a
    series with a missing year still reports a change across the hole.
    The highest month is given as its abbreviated name.
    """
    totals: dict[int, float] = {}
    highest: dict[int, ConsumptionRecord] = {}
    for record in sorted(records, key=lambda r: r.date):
        year = record.date.year
        totals[year] = totals.get(year, 0.0) + record.consumption
        if year not in highest or record.consumption > highest[year].consumption:
            highest[year] = record

    rows: List[ReportRow] = []
    previous: Optional[float] = None
    for year in sorted(totals):
        change = (
            None if previous is None
            else round_half_up(percent_change(totals[year], previous), 2)
        )
        rows.append(ReportRow(
            year=year,
            consumption=totals[year],
            yoy_change=change,
            highest_month=calendar.month_abbr[highest[year].date.month],
        ))
        previous = totals[year]
    return rows

def build_report(
        records: Iterable[ConsumptionRecord],
        profile: str,
        metrics: Optional[ProfileMetrics] = None,
    ) -> ReportPayload:
    """
    Bundle the yearly table with the forecasting profile and its
    externally supplied metrics. When ``metrics`` is omitted the
    pre-evaluated figures registered for ``profile`` are used.
    """
    return ReportPayload(
        title=REPORT_TITLE,
        profile=profile,
        metrics=metrics if metrics is not None else get_profile_metrics(profile),
        rows=build_report_table(records),
    )
