# stdlib
from typing import Iterable, List, Mapping, Optional, Sequence
# thirdpartylib
import numpy as np
from numpy.typing import NDArray
# projectlib
from smart_grid_insight.data.schemas import ConsumptionRecord
from smart_grid_insight.config.constants import (
    MIN_ANNUAL_GROWTH,
    MAX_ANNUAL_GROWTH,
    YOY_TREND_MIN_RECORDS,
    SEASONALITY_MIN_RECORDS,
    SEASONALITY_MAX_YEARS,
    BASE_NOISE_SCALE,
)
from smart_grid_insight.config.profiles import ForecastProfile, resolve_profile
from smart_grid_insight.preprocessing.granularity import seasonal_multiplier
from smart_grid_insight.utils.dates import add_months, month_start, months_between
from smart_grid_insight.utils.logging import Logger, resolve_logger
from smart_grid_insight.utils.numeric import clamp, round_half_up
from smart_grid_insight.utils.typing import RandomSource

class NumpyRandomSource(object):
    """Uniform ``[0, 1)`` floats drawn from a numpy ``Generator``."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self.rng = np.random.default_rng(seed)

    def next(self) -> float:
        return float(self.rng.random())


class SequenceRandomSource(object):
    """
    Replays a fixed sequence of floats, cycling when exhausted.

    Useful for reproducible forecasts: ``SequenceRandomSource([0.5])``
    yields zero noise on every draw.
    """

    def __init__(self, values: Sequence[float]) -> None:
        if not values:
            raise ValueError("SequenceRandomSource needs at least one value.")
        if any(not 0.0 <= v < 1.0 for v in values):
            raise ValueError("Random values must lie within [0, 1).")
        self.values = list(values)
        self.position = 0

    def next(self) -> float:
        value = self.values[self.position % len(self.values)]
        self.position += 1
        return value


def estimate_annual_growth(history: Sequence[ConsumptionRecord]) -> float:
    """
    Unscaled annual growth rate of a sorted monthly series.

    With at least 13 records this is the change between the last value
    and the value twelve months earlier. With 2-12 records the compound
    monthly rate between the first and last value is annualized
    (multiplied by 12). Otherwise, or when the base value is not
    positive, growth is 0. The result is clamped to ``[-0.20, 0.30]``.
    """
    n = len(history)
    last = history[-1]
    growth = 0.0
    if n >= YOY_TREND_MIN_RECORDS:
        base = history[n - YOY_TREND_MIN_RECORDS].consumption
        if base > 0:
            growth = (last.consumption - base) / base
    elif n >= 2:
        first = history[0]
        elapsed = months_between(first.date, last.date)
        if first.consumption > 0 and last.consumption >= 0 and elapsed > 0:
            ratio = last.consumption / first.consumption
            growth = (ratio ** (1 / elapsed) - 1) * 12
    return clamp(growth, MIN_ANNUAL_GROWTH, MAX_ANNUAL_GROWTH)

def synthetic_seasonal_index() -> NDArray[np.float64]:
    return np.array([seasonal_multiplier(m) for m in range(12)])

def seasonal_index(history: Sequence[ConsumptionRecord]) -> NDArray[np.float64]:
    """
    Twelve multipliers describing each calendar month's deviation from
    the yearly mean.

    The last one to three whole years of data are averaged per calendar
    month and divided by the mean of those twelve averages. Months that
    do not occur in the window average to 0. Histories shorter than a
    year, or whose monthly averages are all zero, fall back to the
    synthetic sinusoid ``1 + 0.2 * sin(2 * pi * (month - 1) / 12)``.
    """
    n = len(history)
    if n < SEASONALITY_MIN_RECORDS:
        return synthetic_seasonal_index()
    years = min(SEASONALITY_MAX_YEARS, n // 12)
    window = history[n - years * 12:]
    sums = np.zeros(12)
    counts = np.zeros(12)
    for record in window:
        sums[record.date.month - 1] += record.consumption
        counts[record.date.month - 1] += 1
    averages = np.divide(
        sums, counts, out=np.zeros(12), where=counts > 0
    )
    overall = averages.mean()
    if overall <= 0:
        return synthetic_seasonal_index()
    return averages / overall

def generate_predictions(
        historical: Iterable[ConsumptionRecord],
        num_months: int,
        profile: str,
        *,
        profiles: Optional[Mapping[str, ForecastProfile]] = None,
        rng: Optional[RandomSource] = None,
        logger: Optional[Logger] = None,
    ) -> List[ConsumptionRecord]:
    """
    Extend a monthly consumption series ``num_months`` into the future.

    The forecast combines three components estimated from history:

    - trend: the clamped annual growth rate from
      :func:`estimate_annual_growth`, scaled by the profile's
      ``trend_strength`` and compounded monthly,
    - seasonality: the seasonal index from :func:`seasonal_index`,
      damped by ``seasonal_strength``,
    - noise: a uniform perturbation of at most
      ``5% * (1 - noise_reduction)`` of the predicted value.

    Each month ``i`` after the last observation is predicted as
    ``last * (1 + g / 12) ** i * (1 + (s[month] - 1) * seasonal_strength)``
    plus noise, rounded half-up to an integer.

    Parameters
    ----------
    historical : Iterable[ConsumptionRecord]
        Observed series. Records already flagged as predictions are
        ignored so a combined series can be passed back in.
    num_months : int
        Forecast horizon in months.
    profile : str
        Forecasting profile name; unknown names use the default
        parameter triple.
    profiles : Mapping[str, ForecastProfile], optional
        Profile registry. Defaults to the built-in ``PROFILES``.
    rng : RandomSource, optional
        Source of uniform ``[0, 1)`` draws for the noise term. Defaults
        to an unseeded :class:`NumpyRandomSource`; inject a seeded or
        fixed source for reproducible output.
    logger : Logger, optional
        Receives the estimated components at verbosity 1.

    Returns
    -------
    List[ConsumptionRecord]
        Forecast-only records, one per month, all flagged
        ``is_prediction``. Empty when there is no history or the
        horizon is not positive.
    """
    log = resolve_logger(logger, "forecaster")
    history = sorted(
        (r for r in historical if not r.is_prediction),
        key=lambda r: r.date,
    )
    if not history or num_months <= 0:
        return []

    params = resolve_profile(profile, profiles)
    source: RandomSource = rng if rng is not None else NumpyRandomSource()
    growth = estimate_annual_growth(history) * params.trend_strength
    index = seasonal_index(history)
    last = history[-1]
    start = month_start(last.date)
    noise_scale = BASE_NOISE_SCALE * (1 - params.noise_reduction)
    log(
        f"Profile {params.name}: annual growth {growth:.4f}, "
        f"seasonal index {np.round(index, 3).tolist()}",
        verbosity=1,
    )

    predictions: List[ConsumptionRecord] = []
    for i in range(1, num_months + 1):
        target = add_months(start, i)
        growth_factor = (1 + growth / 12) ** i
        seasonal_factor = (
            1 + (index[target.month - 1] - 1) * params.seasonal_strength
        )
        predicted = last.consumption * growth_factor * seasonal_factor
        noise = (source.next() * 2 - 1) * noise_scale * predicted
        predictions.append(ConsumptionRecord(
            date=target,
            consumption=round_half_up(float(predicted + noise)),
            is_prediction=True,
        ))
    return predictions

def combine_series(
        historical: Iterable[ConsumptionRecord],
        forecast: Iterable[ConsumptionRecord],
    ) -> List[ConsumptionRecord]:
    """Historical and forecast records as one date-sorted series."""
    return sorted([*historical, *forecast], key=lambda r: r.date)
