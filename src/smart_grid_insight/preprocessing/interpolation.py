# stdlib
from bisect import bisect_left, bisect_right
from datetime import date
from typing import Dict, Iterable, List, Optional
# projectlib
from smart_grid_insight.data.schemas import ConsumptionRecord
from smart_grid_insight.utils.dates import month_range, month_start
from smart_grid_insight.utils.logging import Logger, resolve_logger
from smart_grid_insight.utils.numeric import round_half_up

def neighbour_mean(
        records: List[ConsumptionRecord],
        dates: List[date],
        target: date,
    ) -> float:
    """
    Mean of the nearest observed values on either side of ``target``.

    Parameters
    ----------
    records : List[ConsumptionRecord]
        Observed records sorted ascending by date.
    dates : List[date]
        ``records``' dates, used for bisection.
    target : date
        Month being filled.

    Returns
    -------
    float
        Average of the closest preceding and following consumption
        values. If only one side exists its value is used alone; if
        neither exists, 0.
    """
    values: List[float] = []
    before = bisect_left(dates, target)
    if before > 0:
        values.append(records[before - 1].consumption)
    after = bisect_right(dates, target)
    if after < len(records):
        values.append(records[after].consumption)
    if not values:
        return 0.0
    return sum(values) / len(values)

def interpolate_missing_months(
        records: Iterable[ConsumptionRecord],
        *,
        logger: Optional[Logger] = None,
    ) -> List[ConsumptionRecord]:
    """
    Fill every missing month between the first and last record.

    Months that already have a record keep it unchanged (the last
    record wins when a month occurs twice). Each missing month is
    filled with the mean of the nearest preceding and following
    observed values, searched in the original input rather than in
    the values filled so far, rounded half-up to an integer and marked
    ``is_interpolated``.

    Parameters
    ----------
    records : Iterable[ConsumptionRecord]
        Month-start records, possibly with gaps.
    logger : Logger, optional
        Receives the number of filled months at verbosity 1.

    Returns
    -------
    List[ConsumptionRecord]
        Exactly one record per calendar month from the earliest to the
        latest input date. Inputs of length <= 1 are returned as-is.
    """
    log = resolve_logger(logger, "interpolator")
    ordered = sorted(records, key=lambda r: r.date)
    if len(ordered) <= 1:
        return ordered

    existing: Dict[date, ConsumptionRecord] = {
        month_start(r.date): r for r in ordered
    }
    dates = [month_start(r.date) for r in ordered]
    result: List[ConsumptionRecord] = []
    filled = 0
    for current in month_range(dates[0], dates[-1]):
        if current in existing:
            result.append(existing[current])
            continue
        value = neighbour_mean(ordered, dates, current)
        result.append(ConsumptionRecord(
            date=current,
            consumption=round_half_up(value),
            is_prediction=False,
            is_interpolated=True,
        ))
        filled += 1

    log(f"Interpolated {filled} missing months", verbosity=1)
    return result
