"""
Forecasting profile registry.

A profile is a named parameter triple that selects a forecast "style"
for the synthesizer. The names mirror the model identifiers offered in
the dashboard's model selector; none of them carries learned weights.

Each profile also has pre-evaluated error metrics that the dashboard
shows next to the forecast and passes to the report exporter. They are
reference figures only and are not recomputed here.
"""

# stdlib
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional

@dataclass(frozen=True)
class ForecastProfile:
    """
    Parameter set for the forecast synthesizer.

    Attributes
    ----------
    name : str
        Profile identifier.
    seasonal_strength : float
        Share of the seasonal index applied to forecasts, in ``[0, 1]``.
    trend_strength : float
        Multiplier on the clamped annual growth rate, in ``[0, 1]``.
    noise_reduction : float
        Suppression of the random perturbation, in ``[0, 1]``; 1 removes
        noise entirely.
    """
    name: str
    seasonal_strength: float
    trend_strength: float
    noise_reduction: float

    def __post_init__(self) -> None:
        for attr in ("seasonal_strength", "trend_strength", "noise_reduction"):
            value = getattr(self, attr)
            if not 0.0 <= value <= 1.0:
                msg = (
                    f"Profile {self.name!r}: {attr} must be within "
                    f"[0, 1], got {value}."
                )
                raise ValueError(msg)


@dataclass(frozen=True)
class ProfileMetrics:
    mae: float
    mse: float
    r2: float


# ---------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------
DEFAULT_PROFILE = ForecastProfile(
    name="default",
    seasonal_strength=0.7,
    trend_strength=0.8,
    noise_reduction=0.6,
)

# Model identifiers offered by the dashboard. All of them currently share
# the default parameter triple.
PROFILE_NAMES = ("GRU", "Bidirectional LSTM", "DeepAR", "NBEATS")

PROFILES: Dict[str, ForecastProfile] = {
    name: replace(DEFAULT_PROFILE, name=name) for name in PROFILE_NAMES
}

# ---------------------------------------------------------------------
# Pre-evaluated metrics (normalized scale)
# ---------------------------------------------------------------------
METRICS_FALLBACK = "GRU"

PROFILE_METRICS: Dict[str, ProfileMetrics] = {
    "GRU": ProfileMetrics(
        mae=0.08247126781120773,
        mse=0.00986050934169316,
        r2=0.8653740589636583,
    ),
    "Bidirectional LSTM": ProfileMetrics(
        mae=0.06898624264029979,
        mse=0.007775012006380435,
        r2=0.8938474401619412,
    ),
    "DeepAR": ProfileMetrics(
        mae=0.07626980876023641,
        mse=0.010184665602040177,
        r2=0.8508961090804059,
    ),
}

def resolve_profile(
        name: str,
        profiles: Optional[Mapping[str, ForecastProfile]] = None,
    ) -> ForecastProfile:
    """
    Look up a profile by name, falling back to ``DEFAULT_PROFILE``.

    Parameters
    ----------
    name : str
        Profile identifier, e.g. ``"GRU"``.
    profiles : Mapping[str, ForecastProfile], optional
        Registry to search. Defaults to ``PROFILES``.

    Returns
    -------
    ForecastProfile
        The registered profile, or the default parameter triple for
        unknown names.
    """
    registry = PROFILES if profiles is None else profiles
    return registry.get(name, DEFAULT_PROFILE)

def get_profile_metrics(name: str) -> ProfileMetrics:
    """Pre-evaluated metrics for ``name``; GRU's figures when unknown."""
    return PROFILE_METRICS.get(name, PROFILE_METRICS[METRICS_FALLBACK])
