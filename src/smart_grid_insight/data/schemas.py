# stdlib
from enum import Enum
from datetime import date
from dataclasses import dataclass, field
from typing import Any, Dict, List
# projectlib
from smart_grid_insight.utils.typing import FindingLevel

class Column(str, Enum):
    """Public column identifiers for consumption series."""
    DATE = 'date'
    CONSUMPTION = 'consumption'
    IS_PREDICTION = 'is_prediction'
    IS_INTERPOLATED = 'is_interpolated'

# Ordered columns of a serialized series
COLUMNS = (
    Column.DATE,
    Column.CONSUMPTION,
    Column.IS_PREDICTION,
    Column.IS_INTERPOLATED,
)


@dataclass(frozen=True)
class ConsumptionRecord:
    """
    One month (or raw sample) of electricity consumption.

    Records are immutable snapshots; every transformation in the
    package returns new records instead of mutating existing ones.

    Attributes
    ----------
    date : datetime.date
        Sample date. After normalization this is always the first day
        of the month.
    consumption : float
        Consumption in kWh. Expected to be finite and non-negative;
        the validator reports values that are not.
    is_prediction : bool, default False
        True for synthesized forecast values.
    is_interpolated : bool, default False
        True for historical values filled in by the gap interpolator.
    """
    date: date
    consumption: float
    is_prediction: bool = False
    is_interpolated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with an ISO date string under ``Column`` keys."""
        return {
            Column.DATE.value: self.date.isoformat(),
            Column.CONSUMPTION.value: self.consumption,
            Column.IS_PREDICTION.value: self.is_prediction,
            Column.IS_INTERPOLATED.value: self.is_interpolated,
        }


@dataclass(frozen=True)
class MonthExtreme:
    month: str
    consumption: float


@dataclass(frozen=True)
class YearlySummary:
    """Per-year totals and extremes, recomputed on demand."""
    year: int
    total_consumption: float
    year_over_year_change: float
    highest_month: MonthExtreme
    lowest_month: MonthExtreme


@dataclass(frozen=True)
class MonthlyBreakdown:
    """A single month within a yearly breakdown table."""
    date: date
    month: int
    month_name: str
    consumption: float
    change_percent: float
    is_prediction: bool = False
    is_interpolated: bool = False


@dataclass(frozen=True)
class Finding:
    level: FindingLevel
    message: str

    def __str__(self) -> str:
        return f"[{self.level}] {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    """
    Outcome of validating an uploaded series.

    ``findings`` keeps the checks in the order they ran. Only findings
    at level ``"invalid"`` make the report fail; warnings are advisory.
    """
    is_valid: bool
    findings: List[Finding] = field(default_factory=list)

    @property
    def report(self) -> List[str]:
        """Human-readable lines, one per finding."""
        return [str(f) for f in self.findings]

    @property
    def warnings(self) -> List[Finding]:
        return [f for f in self.findings if f.level == "warn"]
