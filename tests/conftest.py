"""
Shared fixtures for the smart_grid_insight test suite.

Series are built from ``(iso_date, consumption)`` pairs so that test
cases read like the tables they describe. Forecast tests inject fixed
random sources; nothing here touches the network or the real
filesystem outside ``tmp_path``.
"""

from datetime import date

import pytest

from smart_grid_insight.data.schemas import ConsumptionRecord
from smart_grid_insight.models.forecasting import SequenceRandomSource
from smart_grid_insight.utils.logging import Logger


def make_series(pairs, **flags):
    """Build records from ``(iso_date, consumption)`` pairs."""
    return [
        ConsumptionRecord(
            date=date.fromisoformat(d),
            consumption=float(v),
            **flags,
        )
        for d, v in pairs
    ]


def monthly(start_year, values, start_month=1):
    """Consecutive month-start records beginning at the given month."""
    out = []
    index = start_year * 12 + start_month - 1
    for i, v in enumerate(values):
        y, m = divmod(index + i, 12)
        out.append(ConsumptionRecord(date=date(y, m + 1, 1), consumption=float(v)))
    return out


# ---------------------------------------------------------------------------
# Series fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def series():
    """Factory fixture wrapping ``make_series``."""
    return make_series


@pytest.fixture
def flat_two_years():
    """24 months of constant 1000 kWh starting January 2022."""
    return monthly(2022, [1000] * 24)


# ---------------------------------------------------------------------------
# Randomness and logging fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def still():
    """Random source whose draws produce zero noise."""
    return SequenceRandomSource([0.5])


@pytest.fixture
def chatty():
    """Logger printing everything up to verbosity 2 to stdout."""
    return Logger(verbose=2, name="test")
