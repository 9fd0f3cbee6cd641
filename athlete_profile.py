"""
Athlete profile classification from the shape of the lactate curve.

ELITE_FLAT athletes stay low and flat for most of the test; standard D-max
finds their first turnpoint (LT1) instead of LT2, so resolvers switch to
Bishop Modified D-max for them.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from lactate_config import DEFAULT_CONFIG, ThresholdConfig
from lactate_models import AthleteProfile, LactateDataPoint, ProfileType

logger = logging.getLogger("lactate_engine.profile")


def baseline_window(n: int, config: ThresholdConfig = DEFAULT_CONFIG) -> int:
    """Number of early stages that make up the baseline: max(2, floor(0.4 * n))."""
    return max(2, int(np.floor(n * config.baseline_fraction)))


def trimmed_baseline(lactate: Sequence[float],
                     config: ThresholdConfig = DEFAULT_CONFIG) -> float:
    """
    Robust baseline lactate level.

    Mean of the early-stage lactate values with the single highest one removed,
    so one elevated early reading does not lift the baseline.
    """
    count = baseline_window(len(lactate), config)
    early = np.sort(np.asarray(lactate[:count], dtype=float))
    trimmed = early[:-1] if len(early) > 1 else early
    return float(np.mean(trimmed))


def classify_athlete_profile(data: Sequence[LactateDataPoint],
                             config: ThresholdConfig = DEFAULT_CONFIG,
                             log: Optional[logging.Logger] = None) -> AthleteProfile:
    """
    Classify an athlete as ELITE_FLAT or STANDARD.

    ELITE_FLAT: baseline below `elite_baseline_max` and a near-zero early slope
    (|slope| < `elite_slope_max` mmol/L per intensity unit).

    Args:
        data: Lactate data points in test order
        config: Threshold configuration

    Returns:
        AthleteProfile
    """
    log = log or logger

    lactate = np.array([d.lactate for d in data], dtype=float)

    if len(data) < config.min_stages_dmax:
        profile = AthleteProfile(
            type=ProfileType.STANDARD,
            baseline_avg=float(lactate[0]) if len(lactate) else 1.5,
            baseline_slope=0.0,
            max_lactate=float(lactate.max()) if len(lactate) else 0.0,
            lactate_range=float(lactate.max() - lactate.min()) if len(lactate) else 0.0,
        )
        log.debug("Profile defaulted to STANDARD (%d points)", len(data))
        return profile

    baseline_avg = trimmed_baseline(lactate, config)

    # Slope across the baseline window
    window = data[:baseline_window(len(data), config)]
    span = window[-1].intensity - window[0].intensity
    baseline_slope = (window[-1].lactate - window[0].lactate) / span if span != 0 else 0.0

    max_lactate = float(lactate.max())
    lactate_range = float(max_lactate - lactate.min())

    if baseline_avg < config.elite_baseline_max and abs(baseline_slope) < config.elite_slope_max:
        profile_type = ProfileType.ELITE_FLAT
    else:
        profile_type = ProfileType.STANDARD

    log.debug(
        "Profile classified: type=%s baseline_avg=%.2f baseline_slope=%.4f "
        "max_lactate=%.2f lactate_range=%.2f",
        profile_type.value, baseline_avg, baseline_slope, max_lactate, lactate_range,
    )

    return AthleteProfile(
        type=profile_type,
        baseline_avg=baseline_avg,
        baseline_slope=float(baseline_slope),
        max_lactate=max_lactate,
        lactate_range=lactate_range,
    )
