"""
D-max lactate threshold detection.

Fits a 3rd degree polynomial to the lactate curve and finds the point of
maximum perpendicular distance from a baseline chord.

References:
- Cheng et al. (1992). A new approach for the determination of ventilatory
  and lactate thresholds.
- Bishop et al. (1998). The effects of training status on the lactate,
  ventilatory and respiratory compensation thresholds (Modified D-max).
"""

import logging
from typing import Dict, Optional, Sequence

import numpy as np
from sklearn.linear_model import LinearRegression
from sklearn.metrics import r2_score
from sklearn.preprocessing import PolynomialFeatures

from athlete_profile import trimmed_baseline
from lactate_config import DEFAULT_CONFIG, ThresholdConfig
from lactate_errors import ArrayLengthMismatchError, InsufficientDataError
from lactate_models import (
    Confidence,
    LactateTestData,
    Method,
    PolynomialCoefficients,
    ThresholdResult,
    round_heart_rate,
)

logger = logging.getLogger("lactate_engine.dmax")


# ============================================================================
# CURVE FITTING
# ============================================================================

def fit_polynomial_3rd(intensity: Sequence[float], lactate: Sequence[float]) -> PolynomialCoefficients:
    """
    Fit 3rd degree polynomial: lactate = a*x³ + b*x² + c*x + d

    Ordinary least squares on the design matrix [x³, x², x, 1].
    A poor fit is not an error; callers judge it by r2.

    Raises:
        ArrayLengthMismatchError: arrays differ in length
        InsufficientDataError: fewer than 4 points (cubic is under-determined)
    """
    x = np.asarray(intensity, dtype=float)
    y = np.asarray(lactate, dtype=float)

    if len(x) != len(y):
        raise ArrayLengthMismatchError(
            f"Cannot fit {len(x)} intensity values against {len(y)} lactate values"
        )
    if len(x) < 4:
        raise InsufficientDataError(f"Cubic fit needs at least 4 points, got {len(x)}")

    poly = PolynomialFeatures(degree=3)
    X_poly = poly.fit_transform(x.reshape(-1, 1))
    model = LinearRegression()
    model.fit(X_poly, y)

    predictions = model.predict(X_poly)

    # coef_ = [bias (unused), x, x², x³]
    return PolynomialCoefficients(
        a=float(model.coef_[3]),
        b=float(model.coef_[2]),
        c=float(model.coef_[1]),
        d=float(model.intercept_),
        r2=float(r2_score(y, predictions)),
        predictions=tuple(float(p) for p in predictions),
    )


# ============================================================================
# GEOMETRY
# ============================================================================

def find_max_perpendicular_distance(coeffs: PolynomialCoefficients, slope: float, intercept: float,
                                    x_min: float, x_max: float,
                                    config: ThresholdConfig = DEFAULT_CONFIG) -> Dict[str, float]:
    """
    Find the point on the fitted curve furthest from the baseline y = slope*x + intercept.

    Samples `config.dmax_samples` equal steps from x_min to x_max (both ends
    included). Distance = |f(x) - (mx + b)| / sqrt(1 + m²). The first sample
    wins on ties; x_min > x_max is allowed (pace tests).

    Returns:
        Dict with 'intensity', 'lactate' and 'distance' of the winning sample
    """
    x = np.linspace(x_min, x_max, config.dmax_samples + 1)
    y_curve = coeffs(x)
    y_baseline = slope * x + intercept

    distances = np.abs(y_curve - y_baseline) / np.sqrt(1 + slope ** 2)
    best = int(np.argmax(distances))

    return {
        'intensity': float(x[best]),
        'lactate': float(y_curve[best]),
        'distance': float(distances[best]),
    }


def interpolate_heart_rate(intensity: np.ndarray, heart_rate: np.ndarray, target: float) -> float:
    """Piecewise-linear heart rate at `target`, clamped to the tested range."""
    order = np.argsort(intensity, kind="stable")
    return float(np.interp(target, intensity[order], heart_rate[order]))


# ============================================================================
# QUALITY CHECKS
# ============================================================================

def check_monotonicity(lactate: Sequence[float], config: ThresholdConfig = DEFAULT_CONFIG) -> bool:
    """
    True when lactate is (near enough) non-decreasing.

    Drops larger than `monotonic_tolerance` count as violations; up to
    `max_monotonic_violations` are allowed for measurement error.
    """
    drops = np.diff(np.asarray(lactate, dtype=float))
    violations = int(np.sum(drops < -config.monotonic_tolerance))
    return violations <= config.max_monotonic_violations


def calculate_confidence(r2: float, distance: float, lactate_values: Sequence[float],
                         config: ThresholdConfig = DEFAULT_CONFIG) -> Confidence:
    """
    Grade a D-max estimate.

    LOW:    r2 below min_r2, or the D-max point sits too close to the chord
            (relative distance < 0.05, curve is close to linear)
    HIGH:   r2 >= 0.95 and relative distance >= 0.10
    MEDIUM: everything else
    """
    if r2 < config.min_r2:
        return Confidence.LOW

    lactate_range = float(np.max(lactate_values) - np.min(lactate_values))
    if lactate_range <= 0:
        return Confidence.LOW

    relative_distance = distance / lactate_range

    if relative_distance < config.low_relative_distance:
        return Confidence.LOW

    if r2 >= config.high_confidence_r2 and relative_distance >= config.high_relative_distance:
        return Confidence.HIGH

    return Confidence.MEDIUM


# ============================================================================
# FALLBACK: FIXED 4.0 mmol/L
# ============================================================================

def calculate_fallback_threshold(data: LactateTestData, coefficients: PolynomialCoefficients,
                                 config: ThresholdConfig = DEFAULT_CONFIG) -> ThresholdResult:
    """
    Fixed-lactate threshold used when the polynomial fit is too poor for D-max.

    Linear interpolation at the first crossing of `anaerobic_target`; the last
    stage when lactate never crosses it.
    """
    target = config.anaerobic_target
    intensity, lactate, heart_rate = data.intensity, data.lactate, data.heart_rate

    threshold_intensity = float(intensity[-1])
    threshold_hr = float(heart_rate[-1])

    for i in range(1, len(lactate)):
        if lactate[i] >= target and lactate[i - 1] < target:
            ratio = (target - lactate[i - 1]) / (lactate[i] - lactate[i - 1])
            threshold_intensity = float(intensity[i - 1] + ratio * (intensity[i] - intensity[i - 1]))
            threshold_hr = float(heart_rate[i - 1] + ratio * (heart_rate[i] - heart_rate[i - 1]))
            break

    r2 = coefficients.r2
    return ThresholdResult(
        intensity=threshold_intensity,
        lactate=target,
        heart_rate=round_heart_rate(threshold_hr),
        method=Method.FALLBACK,
        unit=data.unit,
        confidence=Confidence.LOW,
        r2=r2,
        coefficients=coefficients,
        dmax_distance=0.0,
        warning=f"Poor polynomial fit (R²={r2:.2f}). Using {target:.1f} mmol/L threshold instead.",
    )


# ============================================================================
# D-MAX (STANDARD)
# ============================================================================

def _validate(data: LactateTestData, name: str, config: ThresholdConfig):
    if len(data) < config.min_stages_dmax:
        raise InsufficientDataError(
            f"{name} requires minimum {config.min_stages_dmax} test stages, got {len(data)}"
        )
    if data.intensity[0] == data.intensity[-1]:
        raise InsufficientDataError(f"{name} requires stages at more than one intensity")


def _dmax_from_chord(data: LactateTestData, coefficients: PolynomialCoefficients, start: int,
                     method: Method, warning: Optional[str],
                     config: ThresholdConfig, log: logging.Logger) -> ThresholdResult:
    """D-max along the chord from stage `start` to the last stage."""
    x1, y1 = data.intensity[start], data.lactate[start]
    x2, y2 = data.intensity[-1], data.lactate[-1]

    slope = (y2 - y1) / (x2 - x1)
    intercept = y1 - slope * x1

    point = find_max_perpendicular_distance(coefficients, slope, intercept, x1, x2, config)
    heart_rate = interpolate_heart_rate(data.intensity, data.heart_rate, point['intensity'])
    confidence = calculate_confidence(coefficients.r2, point['distance'], data.lactate, config)

    log.debug(
        "%s: chord (%.2f, %.2f) -> (%.2f, %.2f), point %.2f %s @ %.2f mmol/L, "
        "distance=%.4f r2=%.4f confidence=%s",
        method.value, x1, y1, x2, y2, point['intensity'], data.unit.value, point['lactate'],
        point['distance'], coefficients.r2, confidence.value,
    )

    return ThresholdResult(
        intensity=point['intensity'],
        lactate=point['lactate'],
        heart_rate=round_heart_rate(heart_rate),
        method=method,
        unit=data.unit,
        confidence=confidence,
        r2=coefficients.r2,
        coefficients=coefficients,
        dmax_distance=point['distance'],
        warning=warning,
        baseline_start_intensity=float(x1),
    )


def _monotonic_warning(data: LactateTestData, name: str, config: ThresholdConfig,
                       log: logging.Logger) -> Optional[str]:
    if check_monotonicity(data.lactate, config):
        return None
    log.warning("[%s] Lactate curve is not monotonically increasing - results may be unreliable", name)
    return "Lactate curve is not monotonically increasing - results may be unreliable."


def calculate_dmax(data: LactateTestData, config: ThresholdConfig = DEFAULT_CONFIG,
                   log: Optional[logging.Logger] = None) -> ThresholdResult:
    """
    Standard D-max: baseline chord from the first to the last stage.

    Falls back to the fixed 4.0 mmol/L method (confidence LOW) when the
    cubic fit has R² below `min_r2`.

    Args:
        data: Lactate test data with at least 4 stages
        config: Threshold configuration
        log: Logger replacing the module logger for this call

    Returns:
        ThresholdResult with method DMAX or FALLBACK

    Raises:
        InsufficientDataError: fewer than 4 stages
    """
    log = log or logger
    _validate(data, "D-max", config)

    warning = _monotonic_warning(data, "D-max", config, log)

    coefficients = fit_polynomial_3rd(data.intensity, data.lactate)
    if coefficients.r2 < config.min_r2:
        log.debug("D-max: poor fit (r2=%.4f), using fixed %.1f mmol/L", coefficients.r2,
                  config.anaerobic_target)
        return calculate_fallback_threshold(data, coefficients, config)

    return _dmax_from_chord(data, coefficients, 0, Method.DMAX, warning, config, log)


# ============================================================================
# MODIFIED D-MAX (BISHOP)
# ============================================================================

def find_modified_start_index(lactate: Sequence[float], config: ThresholdConfig = DEFAULT_CONFIG,
                              log: Optional[logging.Logger] = None) -> Dict:
    """
    Locate the anchor of the Bishop baseline chord.

    The anchor is the stage just before the first stage whose lactate is at
    least `rise_threshold` above the trimmed baseline. Without any rise, the
    midpoint stage is used.

    Returns:
        Dict with 'baseline', 'rise_index' (None without a rise) and 'start_index'
    """
    log = log or logger
    lactate = np.asarray(lactate, dtype=float)

    baseline = trimmed_baseline(lactate, config)
    rises = np.flatnonzero(lactate >= baseline + config.rise_threshold)

    if len(rises) == 0:
        rise_index = None
        start_index = len(lactate) // 2
        log.warning(
            "[Mod-Dmax] No rise detected above baseline + %.1f (%.2f mmol/L). Using midpoint as start.",
            config.rise_threshold, baseline + config.rise_threshold,
        )
    else:
        rise_index = int(rises[0])
        start_index = max(0, rise_index - 1)

    log.debug("[Mod-Dmax] baseline=%.2f rise_index=%s start_index=%d",
              baseline, rise_index, start_index)

    return {'baseline': baseline, 'rise_index': rise_index, 'start_index': start_index}


def calculate_mod_dmax(data: LactateTestData, config: ThresholdConfig = DEFAULT_CONFIG,
                       log: Optional[logging.Logger] = None) -> ThresholdResult:
    """
    Bishop Modified D-max.

    Standard D-max joins the FIRST and LAST stage; for flat elite curves that
    chord is shallow and D-max lands on the first turnpoint (LT1). Modified
    D-max joins the stage preceding the first lactate rise to the last stage,
    a steeper chord that lands on LT2, and searches only that sub-range.

    The polynomial is still fitted on all stages.

    Raises:
        InsufficientDataError: fewer than 4 stages
    """
    log = log or logger
    _validate(data, "Modified D-max", config)

    anchor = find_modified_start_index(data.lactate, config, log)
    start = anchor['start_index']

    warning = _monotonic_warning(data, "Mod-Dmax", config, log)
    if anchor['rise_index'] is None:
        no_rise = (
            f"No lactate rise of {config.rise_threshold:.1f} mmol/L above baseline; "
            "midpoint stage used as baseline anchor (unusual curve)."
        )
        warning = f"{warning} {no_rise}" if warning else no_rise

    coefficients = fit_polynomial_3rd(data.intensity, data.lactate)
    if coefficients.r2 < config.min_r2:
        log.debug("Mod-Dmax: poor fit (r2=%.4f), using fixed %.1f mmol/L", coefficients.r2,
                  config.anaerobic_target)
        return calculate_fallback_threshold(data, coefficients, config)

    if data.intensity[start] == data.intensity[-1]:
        start = 0

    return _dmax_from_chord(data, coefficients, start, Method.MOD_DMAX, warning, config, log)
