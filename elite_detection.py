"""
Ensemble LT1 detection for athletes with flat lactate curves.

Combines a log-log (Beaver) breakpoint search with a robust baseline-plus
rule and picks between them by athlete profile:

- ELITE_FLAT: prefer log-log, validated against baseline + 0.3 mmol/L
- STANDARD: prefer baseline + 0.5 mmol/L
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

import numpy as np
from scipy import stats

from athlete_profile import classify_athlete_profile, trimmed_baseline
from lactate_config import DEFAULT_CONFIG, ThresholdConfig
from lactate_models import (
    AthleteProfile,
    Confidence,
    LactateDataPoint,
    Method,
    ProfileType,
    ThresholdResult,
    round_heart_rate,
)

logger = logging.getLogger("lactate_engine.elite")


@dataclass(frozen=True)
class EnsembleResult:
    lt1: Optional[ThresholdResult]
    profile: AthleteProfile
    log_log: Optional[ThresholdResult]
    baseline_plus: Optional[ThresholdResult]


def _result(point: LactateDataPoint, method: Method, confidence: Confidence,
            profile_type: ProfileType) -> ThresholdResult:
    return ThresholdResult(
        intensity=point.intensity,
        lactate=point.lactate,
        heart_rate=round_heart_rate(point.heart_rate),
        method=method,
        confidence=confidence,
        profile_type=profile_type,
    )


# ============================================================================
# PRE-PROCESSING
# ============================================================================

def preprocess_data(points: Sequence[LactateDataPoint], config: ThresholdConfig = DEFAULT_CONFIG,
                    log: Optional[logging.Logger] = None) -> List[LactateDataPoint]:
    """
    Startle filter: a first reading elevated by pre-test nerves is replaced by
    the second reading.
    """
    log = log or logger
    processed = list(points)
    if len(processed) < 3:
        return processed

    first, second = processed[0], processed[1]
    if first.lactate > second.lactate + config.startle_tolerance:
        log.debug("Startle filter: first reading %.2f elevated over %.2f, adjusting baseline",
                  first.lactate, second.lactate)
        processed[0] = replace(first, lactate=second.lactate)

    return processed


# ============================================================================
# LOG-LOG (BEAVER)
# ============================================================================

def _sse(x: np.ndarray, y: np.ndarray, fit) -> float:
    return float(np.sum((y - (fit.slope * x + fit.intercept)) ** 2))


def calculate_loglog_threshold(points: Sequence[LactateDataPoint], config: ThresholdConfig = DEFAULT_CONFIG,
                               log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    Log-log breakpoint detection.

    1. Transform to ln(intensity), ln(lactate)
    2. For each breakpoint k, fit one line through points 0..k and one
       through k..n-1 (both include k)
    3. Keep the k with the lowest total SSE
    4. Require the second slope to exceed the first

    Confidence from slope2 / max(0.01, |slope1|): > 2.0 HIGH, > 1.3 MEDIUM.

    Returns:
        ThresholdResult at the breakpoint stage, or None
    """
    log = log or logger

    valid = [p for p in points if p.intensity > 0 and p.lactate > 0]
    if len(valid) < config.min_points_loglog:
        log.debug("[Log-Log] Insufficient data points (%d)", len(valid))
        return None

    x = np.log([p.intensity for p in valid])
    y = np.log([p.lactate for p in valid])

    best_k, best_sse = None, np.inf
    best_slope1 = best_slope2 = 0.0

    # at least 3 points on each line
    for k in range(2, len(valid) - 2):
        line1 = stats.linregress(x[:k + 1], y[:k + 1])
        line2 = stats.linregress(x[k:], y[k:])
        sse = _sse(x[:k + 1], y[:k + 1], line1) + _sse(x[k:], y[k:], line2)

        if sse < best_sse:
            best_k, best_sse = k, sse
            best_slope1, best_slope2 = float(line1.slope), float(line2.slope)

    if best_k is None:
        return None

    slope_ratio = best_slope2 / max(0.01, abs(best_slope1))

    log.debug("[Log-Log] breakpoint=%d slope1=%.4f slope2=%.4f ratio=%.2f sse=%.4f",
              best_k, best_slope1, best_slope2, slope_ratio, best_sse)

    if best_slope2 <= best_slope1:
        log.debug("[Log-Log] No slope increase at breakpoint")
        return None

    if slope_ratio > config.loglog_high_ratio:
        confidence = Confidence.HIGH
    elif slope_ratio > config.loglog_medium_ratio:
        confidence = Confidence.MEDIUM
    else:
        confidence = Confidence.LOW

    return _result(valid[best_k], Method.LOG_LOG, confidence, ProfileType.ELITE_FLAT)


# ============================================================================
# BASELINE PLUS
# ============================================================================

_BASELINE_PLUS_METHODS = {
    ProfileType.ELITE_FLAT: (Method.BASELINE_PLUS_0_3, Method.BASELINE_PLUS_0_3_ESTIMATED),
    ProfileType.STANDARD: (Method.BASELINE_PLUS_0_5, Method.BASELINE_PLUS_0_5_ESTIMATED),
}


def calculate_baseline_plus_threshold(points: Sequence[LactateDataPoint], profile: AthleteProfile,
                                      config: ThresholdConfig = DEFAULT_CONFIG,
                                      log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    Robust baseline plus an adaptive delta (0.3 elite, 0.5 standard).

    Triggers at the first stage where it and the next stage both exceed the
    target, then steps back one stage to the point just before the rise.
    Without a trigger, the stage nearest the target is returned with LOW
    confidence.
    """
    log = log or logger
    if len(points) < config.min_stages_dmax:
        return None

    elite = profile.type is ProfileType.ELITE_FLAT
    delta = config.elite_baseline_delta if elite else config.standard_baseline_delta
    method, estimated_method = _BASELINE_PLUS_METHODS[profile.type]

    lactate = np.array([p.lactate for p in points], dtype=float)
    baseline = trimmed_baseline(lactate, config)
    target = baseline + delta

    log.debug("[Baseline Plus] baseline=%.2f delta=%.1f target=%.2f profile=%s",
              baseline, delta, target, profile.type.value)

    for i in range(len(points) - 1):
        if lactate[i] > target and lactate[i + 1] > target:
            confidence = Confidence.MEDIUM if elite else Confidence.HIGH
            return _result(points[max(0, i - 1)], method, confidence, profile.type)

    closest = int(np.argmin(np.abs(lactate - target)))
    return _result(points[closest], estimated_method, Confidence.LOW, profile.type)


# ============================================================================
# ENSEMBLE
# ============================================================================

def detect_elite_thresholds(points: Sequence[LactateDataPoint], config: ThresholdConfig = DEFAULT_CONFIG,
                            log: Optional[logging.Logger] = None) -> EnsembleResult:
    """
    Run both LT1 detectors and select one by profile.

    For ELITE_FLAT profiles log-log wins when the two agree within
    `ensemble_divergence` intensity units; otherwise the lower-intensity
    (conservative) result is taken with MEDIUM confidence.
    """
    log = log or logger

    processed = preprocess_data(points, config, log)
    profile = classify_athlete_profile(processed, config, log)

    log_log = calculate_loglog_threshold(processed, config, log)
    baseline_plus = calculate_baseline_plus_threshold(processed, profile, config, log)

    if profile.type is ProfileType.ELITE_FLAT:
        if log_log and baseline_plus:
            divergence = abs(log_log.intensity - baseline_plus.intensity)
            if divergence <= config.ensemble_divergence:
                lt1 = log_log
                log.debug("[Ensemble] Methods agree (%.2f apart), using Log-Log", divergence)
            else:
                conservative = log_log if log_log.intensity < baseline_plus.intensity else baseline_plus
                lt1 = replace(conservative, confidence=Confidence.MEDIUM)
                log.debug("[Ensemble] Methods diverge (%.2f apart), using conservative %s",
                          divergence, conservative.method.value)
        else:
            lt1 = log_log or baseline_plus
    else:
        lt1 = baseline_plus or log_log

    return EnsembleResult(lt1=lt1, profile=profile, log_log=log_log, baseline_plus=baseline_plus)


def detect_elite_lt1(points: Sequence[LactateDataPoint], config: ThresholdConfig = DEFAULT_CONFIG,
                     log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """LT1 from the ensemble detector, or None."""
    return detect_elite_thresholds(points, config, log).lt1
