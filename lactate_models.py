"""
Data model for lactate step tests and threshold results.

A test is a list of TestStage (one intensity Quantity + lactate + HR per stage).
The engine works on the array view, LactateTestData, built once at ingestion so
unit dispatch never has to be repeated further down.
"""

import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from lactate_errors import (
    ArrayLengthMismatchError,
    InsufficientDataError,
    InvalidMeasurementError,
    MixedUnitsError,
    NoValidIntensityFieldError,
    UnsortedStagesError,
)

logger = logging.getLogger("lactate_engine.models")


# ============================================================================
# ENUMS
# ============================================================================

class Unit(str, Enum):
    KMH = "km/h"
    WATT = "watt"
    MIN_PER_KM = "min/km"

    @property
    def stage_field(self) -> str:
        return {Unit.KMH: "speed", Unit.WATT: "power", Unit.MIN_PER_KM: "pace"}[self]

    @property
    def inverted(self) -> bool:
        """Pace falls as intensity rises."""
        return self is Unit.MIN_PER_KM


class Method(str, Enum):
    DMAX = "DMAX"
    MOD_DMAX = "MOD_DMAX"
    FALLBACK = "FALLBACK"
    EXPONENTIAL_RISE = "EXPONENTIAL_RISE"
    BASELINE_PLUS_0_3 = "BASELINE_PLUS_0.3"
    BASELINE_PLUS_0_3_ESTIMATED = "BASELINE_PLUS_0.3_ESTIMATED"
    BASELINE_PLUS_0_5 = "BASELINE_PLUS_0.5"
    BASELINE_PLUS_0_5_ESTIMATED = "BASELINE_PLUS_0.5_ESTIMATED"
    BASELINE_PLUS_1_0 = "BASELINE_PLUS_1.0"
    LINEAR_2_0 = "LINEAR_2.0"
    LINEAR_4_0 = "LINEAR_4.0"
    ESTIMATED = "ESTIMATED"
    LOG_LOG = "LOG_LOG"
    DICKHUTH = "DICKHUTH"
    DICKHUTH_ESTIMATED = "DICKHUTH_ESTIMATED"
    MANUAL_LT1 = "MANUAL_LT1"
    MANUAL_LT2 = "MANUAL_LT2"


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ProfileType(str, Enum):
    STANDARD = "STANDARD"
    ELITE_FLAT = "ELITE_FLAT"


# ============================================================================
# STAGES
# ============================================================================

def _is_populated(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def round_heart_rate(value: float) -> int:
    """Whole beats per minute, halves rounded up."""
    return int(np.floor(value + 0.5))


@dataclass(frozen=True)
class Quantity:
    """An intensity value tagged with its unit."""
    value: float
    unit: Unit


@dataclass(frozen=True)
class TestStage:
    """One step of an incremental test. Exactly one of speed/power/pace is set."""
    __test__ = False  # not a pytest class

    lactate: float
    heart_rate: float
    speed: Optional[float] = None   # km/h
    power: Optional[float] = None   # watt
    pace: Optional[float] = None    # min/km

    @property
    def quantity(self) -> Quantity:
        present = [
            Quantity(float(getattr(self, unit.stage_field)), unit)
            for unit in Unit
            if _is_populated(getattr(self, unit.stage_field))
        ]
        if not present:
            raise NoValidIntensityFieldError(
                f"Stage (lactate={self.lactate}) has no speed, power or pace"
            )
        if len(present) > 1:
            raise MixedUnitsError(
                f"Stage (lactate={self.lactate}) has more than one intensity field: "
                + ", ".join(q.unit.value for q in present)
            )
        return present[0]

    @classmethod
    def at(cls, intensity: Quantity, lactate: float, heart_rate: float) -> "TestStage":
        return cls(lactate=lactate, heart_rate=heart_rate,
                   **{intensity.unit.stage_field: intensity.value})


@dataclass(frozen=True)
class LactateDataPoint:
    intensity: float
    lactate: float
    heart_rate: float


@dataclass
class LactateTestData:
    """
    Array view of one test, validated on construction.

    Raises:
        ArrayLengthMismatchError: arrays differ in length
        UnsortedStagesError: intensity is not ordered easy -> hard
    """
    intensity: np.ndarray
    lactate: np.ndarray
    heart_rate: np.ndarray
    unit: Unit = Unit.KMH

    def __post_init__(self):
        self.intensity = np.asarray(self.intensity, dtype=float)
        self.lactate = np.asarray(self.lactate, dtype=float)
        self.heart_rate = np.asarray(self.heart_rate, dtype=float)
        self.unit = Unit(self.unit)

        lengths = {len(self.intensity), len(self.lactate), len(self.heart_rate)}
        if len(lengths) != 1:
            raise ArrayLengthMismatchError(
                f"All data arrays must have same length (intensity={len(self.intensity)}, "
                f"lactate={len(self.lactate)}, heart_rate={len(self.heart_rate)})"
            )

        steps = np.diff(self.intensity)
        unsorted = steps > 0 if self.unit.inverted else steps < 0
        if unsorted.any():
            raise UnsortedStagesError(
                f"Stages must be ordered by ascending intensity ({self.unit.value})"
            )

    def __len__(self) -> int:
        return len(self.intensity)

    @classmethod
    def from_stages(cls, stages: Sequence[TestStage],
                    log: Optional[logging.Logger] = None) -> "LactateTestData":
        """
        Ingest stages: resolve each stage's unit once, drop stages without an
        intensity, and reject tests that mix units or carry negative lactate
        or non-positive heart rate values.
        """
        log = log or logger

        kept: List[Tuple[Quantity, TestStage]] = []
        for index, stage in enumerate(stages):
            try:
                kept.append((stage.quantity, stage))
            except NoValidIntensityFieldError:
                log.warning("Stage %d has no intensity field, excluded from analysis", index)

        if not kept:
            raise InsufficientDataError("No stages with a valid intensity field")

        for q, stage in kept:
            if stage.lactate < 0:
                raise InvalidMeasurementError(
                    f"Stage at {q.value} {q.unit.value} has negative lactate ({stage.lactate})"
                )
            if stage.heart_rate <= 0:
                raise InvalidMeasurementError(
                    f"Stage at {q.value} {q.unit.value} has non-positive heart rate ({stage.heart_rate})"
                )

        units = {q.unit for q, _ in kept}
        if len(units) > 1:
            raise MixedUnitsError(
                "Stages mix intensity units: " + ", ".join(sorted(u.value for u in units))
            )

        return cls(
            intensity=[q.value for q, _ in kept],
            lactate=[s.lactate for _, s in kept],
            heart_rate=[s.heart_rate for _, s in kept],
            unit=kept[0][0].unit,
        )

    def to_points(self) -> List[LactateDataPoint]:
        """Data points with a positive intensity (rest stages dropped)."""
        return [
            LactateDataPoint(float(x), float(lac), float(hr))
            for x, lac, hr in zip(self.intensity, self.lactate, self.heart_rate)
            if x > 0
        ]


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True)
class PolynomialCoefficients:
    """y = a*x^3 + b*x^2 + c*x + d"""
    a: float
    b: float
    c: float
    d: float
    r2: float
    predictions: Tuple[float, ...] = ()

    def __call__(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        return self.a * x ** 3 + self.b * x ** 2 + self.c * x + self.d


@dataclass(frozen=True)
class AthleteProfile:
    type: ProfileType
    baseline_avg: float
    baseline_slope: float
    max_lactate: float
    lactate_range: float


@dataclass(frozen=True)
class ThresholdResult:
    intensity: float
    lactate: float
    heart_rate: int
    method: Method
    unit: Optional[Unit] = None
    confidence: Optional[Confidence] = None
    r2: Optional[float] = None
    coefficients: Optional[PolynomialCoefficients] = None
    dmax_distance: Optional[float] = None
    warning: Optional[str] = None
    profile_type: Optional[ProfileType] = None
    baseline_start_intensity: Optional[float] = None

    @property
    def quantity(self) -> Quantity:
        return Quantity(self.intensity, self.unit)

    def to_dict(self) -> Dict:
        row = asdict(self)
        row.pop("coefficients")
        for key in ("method", "unit", "confidence", "profile_type"):
            if row[key] is not None:
                row[key] = row[key].value
        return row
