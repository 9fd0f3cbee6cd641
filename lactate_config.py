"""
Threshold Engine Configuration

All tuning constants of the lactate threshold engine in one place.
Override per call with `config=...`, per process with LACTATE_* environment
variables (a local .env file is honoured).
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Tuple

from dotenv import load_dotenv


ENV_PREFIX = "LACTATE_"


@dataclass(frozen=True)
class ThresholdConfig:
    # --- Minimum data ---
    min_stages_dmax: int = 4
    min_stages_exponential_rise: int = 3
    min_points_elite_lt1: int = 5
    min_points_loglog: int = 5

    # --- Curve fit quality ---
    min_r2: float = 0.90
    high_confidence_r2: float = 0.95

    # --- D-max geometry ---
    dmax_samples: int = 1000
    low_relative_distance: float = 0.05
    high_relative_distance: float = 0.10

    # --- Baseline / rise detection (mmol/L) ---
    baseline_fraction: float = 0.4
    rise_threshold: float = 0.4
    monotonic_tolerance: float = 0.2
    max_monotonic_violations: int = 1
    exponential_rise_delta: float = 0.5
    startle_tolerance: float = 0.2

    # --- Baseline-plus deltas (mmol/L) ---
    elite_baseline_delta: float = 0.3
    standard_baseline_delta: float = 0.5
    lt2_baseline_delta: float = 1.0
    lt2_min_target: float = 2.0
    dickhuth_delta: float = 1.5

    # --- Fixed lactate targets (mmol/L) ---
    aerobic_target: float = 2.0
    anaerobic_target: float = 4.0
    aerobic_band: Tuple[float, float] = (1.5, 2.5)

    # --- Athlete profile ---
    elite_baseline_max: float = 1.5
    elite_slope_max: float = 0.05

    # --- Ensemble LT1 ---
    ensemble_divergence: float = 1.5
    loglog_high_ratio: float = 2.0
    loglog_medium_ratio: float = 1.3

    # --- D-max plausibility for LT2 ---
    implausible_dmax_lactate: float = 3.0
    steep_curve_max_lactate: float = 8.0

    def with_overrides(self, **overrides) -> "ThresholdConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    @classmethod
    def from_env(cls) -> "ThresholdConfig":
        """
        Build a config from LACTATE_<FIELD> environment variables.

        e.g. LACTATE_MIN_R2=0.85, LACTATE_AEROBIC_BAND=1.4,2.6
        """
        load_dotenv()

        overrides = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue

            default = getattr(cls, f.name)
            if isinstance(default, tuple):
                overrides[f.name] = tuple(float(part) for part in raw.split(","))
            elif isinstance(default, int):
                overrides[f.name] = int(raw)
            else:
                overrides[f.name] = float(raw)

        return cls(**overrides)


DEFAULT_CONFIG = ThresholdConfig()
