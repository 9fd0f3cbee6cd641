"""
Stage-level aerobic (LT1) and anaerobic (LT2) threshold resolution.

Each resolver walks a fallback hierarchy, from curve-based methods down to
fixed lactate targets and finally a nearest-stage estimate, so a coach always
gets a best-effort answer with a method tag and a confidence grade.
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from athlete_profile import classify_athlete_profile
from elite_detection import (
    calculate_baseline_plus_threshold,
    calculate_loglog_threshold,
    detect_elite_lt1,
    preprocess_data,
)
from lactate_analysis import calculate_dmax, calculate_mod_dmax, interpolate_heart_rate
from lactate_config import DEFAULT_CONFIG, ThresholdConfig
from lactate_errors import InsufficientDataError, LactateAnalysisError
from lactate_models import (
    AthleteProfile,
    Confidence,
    LactateDataPoint,
    LactateTestData,
    Method,
    ProfileType,
    TestStage,
    ThresholdResult,
    Unit,
    round_heart_rate,
)

logger = logging.getLogger("lactate_engine.thresholds")

Stages = Union[LactateTestData, Sequence[TestStage]]
LT1Detector = Callable[..., Optional[ThresholdResult]]


def _as_data(stages: Stages, log: logging.Logger) -> LactateTestData:
    if isinstance(stages, LactateTestData):
        return stages
    return LactateTestData.from_stages(stages, log)


# ============================================================================
# INTERPOLATION HELPERS
# ============================================================================

def linear_interpolation(data: LactateTestData, i_below: int, i_above: int,
                         target: float) -> Tuple[float, float]:
    """
    Intensity and heart rate where lactate reaches `target` between two stages.

    Returns:
        (intensity, heart_rate)
    """
    lac_below, lac_above = data.lactate[i_below], data.lactate[i_above]
    factor = (target - lac_below) / (lac_above - lac_below)

    intensity = data.intensity[i_below] + factor * (data.intensity[i_above] - data.intensity[i_below])
    heart_rate = data.heart_rate[i_below] + factor * (data.heart_rate[i_above] - data.heart_rate[i_below])
    return float(intensity), float(heart_rate)


def find_bracket(data: LactateTestData, target: float) -> Optional[Tuple[int, int]]:
    """
    Indices of the last stage at or below `target` before the first stage above it.

    None when lactate never crosses the target (or starts above it).
    """
    below = None
    for i, lactate in enumerate(data.lactate):
        if lactate <= target:
            below = i
        else:
            return (below, i) if below is not None else None
    return None


def _nearest_stage(data: LactateTestData, target: float) -> int:
    return int(np.argmin(np.abs(data.lactate - target)))


def _stage_result(data: LactateTestData, index: int, method: Method,
                  confidence: Optional[Confidence], **extra) -> ThresholdResult:
    return ThresholdResult(
        intensity=float(data.intensity[index]),
        lactate=float(data.lactate[index]),
        heart_rate=round_heart_rate(data.heart_rate[index]),
        method=method,
        unit=data.unit,
        confidence=confidence,
        **extra,
    )


def _interpolated_result(data: LactateTestData, bracket: Tuple[int, int], target: float,
                         method: Method, confidence: Optional[Confidence], **extra) -> ThresholdResult:
    intensity, heart_rate = linear_interpolation(data, bracket[0], bracket[1], target)
    return ThresholdResult(
        intensity=intensity,
        lactate=target,
        heart_rate=round_heart_rate(heart_rate),
        method=method,
        unit=data.unit,
        confidence=confidence,
        **extra,
    )


def estimate_threshold(stages: Stages, target: float, config: ThresholdConfig = DEFAULT_CONFIG,
                       log: Optional[logging.Logger] = None) -> ThresholdResult:
    """Nearest-lactate stage as a last-resort estimate (no interpolation)."""
    log = log or logger
    data = _as_data(stages, log)

    index = _nearest_stage(data, target)
    log.debug("Estimating %.1f mmol/L threshold from nearest stage %d (%.2f mmol/L)",
              target, index, data.lactate[index])

    return _stage_result(
        data, index, Method.ESTIMATED, Confidence.LOW,
        warning=f"No stages bracket {target:.1f} mmol/L; nearest stage used as estimate.",
    )


# ============================================================================
# INDIVIDUAL LT2 METHODS
# ============================================================================

def find_exponential_rise_point(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                                log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    Start of the exponential lactate rise.

    The first stage-to-stage increase above `exponential_rise_delta` marks the
    rise; the threshold is the midpoint of those two stages.

    Raises:
        InsufficientDataError: fewer than 3 stages
    """
    log = log or logger
    data = _as_data(stages, log)

    if len(data) < config.min_stages_exponential_rise:
        raise InsufficientDataError(
            f"Exponential rise detection needs {config.min_stages_exponential_rise}+ stages, got {len(data)}"
        )

    deltas = np.diff(data.lactate)
    rises = np.flatnonzero(deltas > config.exponential_rise_delta)
    log.debug("Exponential rise deltas: %s", np.round(deltas, 2).tolist())

    if len(rises) == 0:
        log.debug("No exponential rise found")
        return None

    before, after = int(rises[0]), int(rises[0]) + 1
    return ThresholdResult(
        intensity=float((data.intensity[before] + data.intensity[after]) / 2),
        lactate=float((data.lactate[before] + data.lactate[after]) / 2),
        heart_rate=round_heart_rate((data.heart_rate[before] + data.heart_rate[after]) / 2),
        method=Method.EXPONENTIAL_RISE,
        unit=data.unit,
        confidence=Confidence.MEDIUM,
    )


def calculate_baseline_plus_one(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                                log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """Interpolated threshold at max(min lactate + 1.0, 2.0) mmol/L."""
    log = log or logger
    data = _as_data(stages, log)

    target = max(float(data.lactate.min()) + config.lt2_baseline_delta, config.lt2_min_target)
    bracket = find_bracket(data, target)
    log.debug("Baseline + %.1f: target=%.2f bracket=%s", config.lt2_baseline_delta, target, bracket)

    if bracket is None:
        return None
    return _interpolated_result(data, bracket, target, Method.BASELINE_PLUS_1_0, Confidence.LOW)


def calculate_dickhuth_threshold(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                                 log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    Dickhuth individual anaerobic threshold.

    1. Lactate equivalent = lactate / intensity per stage (pace as 60 / pace km/h)
    2. Take the stage with the minimum equivalent (most efficient point)
    3. LT2 = its lactate + 1.5 mmol/L, interpolated between stages

    Reference: Dickhuth HH et al. (1999), Int J Sports Med.
    """
    log = log or logger
    data = _as_data(stages, log)

    if len(data) < config.min_stages_exponential_rise:
        return None

    with np.errstate(divide="ignore"):
        speed = 60.0 / data.intensity if data.unit.inverted else data.intensity
    valid = np.flatnonzero((speed > 0) & np.isfinite(speed) & (data.lactate > 0))
    if len(valid) < config.min_stages_exponential_rise:
        log.debug("Dickhuth: not enough valid data points (%d)", len(valid))
        return None

    equivalents = data.lactate[valid] / speed[valid]
    min_index = int(valid[int(np.argmin(equivalents))])
    target = float(data.lactate[min_index]) + config.dickhuth_delta

    log.debug("Dickhuth: minimum lactate equivalent %.4f at stage %d, target %.2f mmol/L",
              float(equivalents.min()), min_index, target)

    bracket = find_bracket(data, target)
    if bracket is None:
        return _stage_result(data, _nearest_stage(data, target), Method.DICKHUTH_ESTIMATED,
                             Confidence.LOW)
    return _interpolated_result(data, bracket, target, Method.DICKHUTH, Confidence.MEDIUM)


def apply_manual_threshold_override(stages: Stages, lactate: float, intensity: float, kind: str,
                                    log: Optional[logging.Logger] = None) -> ThresholdResult:
    """
    Threshold set by hand by the test leader.

    Args:
        lactate: Manual lactate value (mmol/L)
        intensity: Manual intensity in the test's unit
        kind: 'LT1' or 'LT2'
    """
    log = log or logger
    data = _as_data(stages, log)
    method = {"LT1": Method.MANUAL_LT1, "LT2": Method.MANUAL_LT2}[kind]

    heart_rate = interpolate_heart_rate(data.intensity, data.heart_rate, intensity)
    log.debug("Manual %s override: %.2f %s @ %.2f mmol/L, HR %.0f",
              kind, intensity, data.unit.value, lactate, heart_rate)

    return ThresholdResult(
        intensity=float(intensity),
        lactate=float(lactate),
        heart_rate=round_heart_rate(heart_rate),
        method=method,
        unit=data.unit,
        confidence=Confidence.HIGH,
    )


# ============================================================================
# D-MAX WRAPPERS
# ============================================================================

def try_dmax_threshold(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                       log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """Standard D-max, or None if it fails or is LOW confidence."""
    log = log or logger
    try:
        result = calculate_dmax(_as_data(stages, log), config, log)
    except InsufficientDataError as e:
        log.debug("D-max unavailable: %s", e)
        return None
    if result.confidence is Confidence.LOW:
        log.debug("D-max rejected: %s confidence (method %s)", result.confidence.value, result.method.value)
        return None
    return result


def try_mod_dmax_threshold(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                           log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """Bishop Modified D-max, or None if it fails or is LOW confidence."""
    log = log or logger
    try:
        result = calculate_mod_dmax(_as_data(stages, log), config, log)
    except InsufficientDataError as e:
        log.debug("Modified D-max unavailable: %s", e)
        return None
    if result.confidence is Confidence.LOW:
        log.debug("Modified D-max rejected: %s confidence (method %s)",
                  result.confidence.value, result.method.value)
        return None
    return result


def _profile(data: LactateTestData, config: ThresholdConfig, log: logging.Logger) -> AthleteProfile:
    return classify_athlete_profile(data.to_points(), config, log)


# ============================================================================
# LT2: UNIFIED HIERARCHY
# ============================================================================

def detect_lt2_unified(stages: Stages, profile: Optional[AthleteProfile] = None,
                       config: ThresholdConfig = DEFAULT_CONFIG,
                       log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    LT2 from a three-method hierarchy:

    1. Modified D-max (Bishop), accepted unless LOW confidence
    2. Exponential rise (first delta > 0.5 mmol/L)
    3. Baseline + 1.0 mmol/L

    Returns None when no method applies.
    """
    log = log or logger
    data = _as_data(stages, log)
    profile = profile or _profile(data, config, log)

    log.debug("Unified LT2 detection: profile=%s baseline=%.2f", profile.type.value, profile.baseline_avg)

    result = try_mod_dmax_threshold(data, config, log)
    if result is not None:
        return replace(result, profile_type=profile.type)

    try:
        result = find_exponential_rise_point(data, config, log)
    except InsufficientDataError as e:
        log.debug("Exponential rise unavailable: %s", e)
        result = None
    if result is not None:
        return replace(result, profile_type=profile.type)

    result = calculate_baseline_plus_one(data, config, log)
    if result is not None:
        return replace(result, profile_type=profile.type)

    log.debug("Could not find LT2 with any method")
    return None


# ============================================================================
# AEROBIC THRESHOLD (LT1)
# ============================================================================

def calculate_aerobic_threshold(stages: Stages, lt1_detector: Optional[LT1Detector] = detect_elite_lt1,
                                config: ThresholdConfig = DEFAULT_CONFIG,
                                log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    Resolve the aerobic threshold (LT1).

    Order of attempts:
    1. ELITE_FLAT with 5+ points: ensemble LT1 detector (`lt1_detector`)
    2. Standard D-max, if its lactate lies in the aerobic band (1.5-2.5 mmol/L)
    3. Linear interpolation at 2.0 mmol/L
    4. ELITE_FLAT never reaching 2.0: stage nearest baseline + 0.3 mmol/L
    5. Stage nearest 2.0 mmol/L (estimate)

    Args:
        stages: Test stages (or prepared LactateTestData)
        lt1_detector: Called with the data points, `config` and `log` for flat curves;
            None disables it
        config: Threshold configuration
        log: Logger replacing the module logger for this call
    """
    log = log or logger
    data = _as_data(stages, log)
    points = data.to_points()
    profile = classify_athlete_profile(points, config, log)

    log.debug("[Aerobic Threshold] profile=%s", profile.type.value)

    elite = profile.type is ProfileType.ELITE_FLAT

    if elite and len(points) >= config.min_points_elite_lt1 and lt1_detector is not None:
        lt1 = lt1_detector(points, config=config, log=log)
        if lt1 is not None:
            log.debug("[Aerobic Threshold] Elite LT1: %.2f @ %.2f mmol/L (%s, %s)", lt1.intensity,
                      lt1.lactate, lt1.method.value, lt1.confidence.value if lt1.confidence else None)
            return replace(lt1, unit=data.unit, profile_type=profile.type)

    dmax = try_dmax_threshold(data, config, log)
    low, high = config.aerobic_band
    if dmax is not None and low <= dmax.lactate <= high:
        log.debug("[Aerobic Threshold] Using D-max (%.2f mmol/L)", dmax.lactate)
        return replace(dmax, profile_type=profile.type)

    target = config.aerobic_target
    bracket = find_bracket(data, target)
    if bracket is not None:
        log.debug("[Aerobic Threshold] Linear interpolation at %.1f mmol/L between stages %s", target, bracket)
        return _interpolated_result(data, bracket, target, Method.LINEAR_2_0, None,
                                    profile_type=profile.type)

    if elite:
        elite_target = profile.baseline_avg + config.elite_baseline_delta
        log.debug("[Aerobic Threshold] Elite fallback: nearest stage to %.2f mmol/L", elite_target)
        return _stage_result(data, _nearest_stage(data, elite_target), Method.BASELINE_PLUS_0_3,
                             Confidence.MEDIUM, profile_type=profile.type)

    return replace(estimate_threshold(data, target, config, log), profile_type=profile.type)


# ============================================================================
# ANAEROBIC THRESHOLD (LT2)
# ============================================================================

def _dmax_is_implausible(result: ThresholdResult, profile: AthleteProfile, config: ThresholdConfig) -> bool:
    # Steep curves: standard D-max can land on LT1 instead of LT2
    suspiciously_low = (result.lactate < config.implausible_dmax_lactate
                        and profile.max_lactate > config.steep_curve_max_lactate)
    near_lt1 = result.lactate < profile.baseline_avg + config.lt2_baseline_delta
    return suspiciously_low or near_lt1


def _second_crossing(data: LactateTestData, target: float) -> Optional[Tuple[int, int]]:
    """Bracket of a later return above `target` after lactate dipped back below it."""
    first = None
    for i, lactate in enumerate(data.lactate):
        if lactate < target:
            continue
        if first is None:
            first = i
        elif i > first + 1 and data.lactate[i - 1] < target:
            return i - 1, i
    return None


def calculate_anaerobic_threshold(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                                  log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    Resolve the anaerobic threshold (LT2).

    Order of attempts:
    1. ELITE_FLAT with 4+ stages: Modified D-max (Bishop)
    2. Standard D-max, unless the result is physiologically implausible
    3. Linear interpolation at 4.0 mmol/L, preferring a second crossing
    4. Stage nearest 4.0 mmol/L (estimate)
    """
    log = log or logger
    data = _as_data(stages, log)
    profile = _profile(data, config, log)

    log.debug(
        "[Anaerobic Threshold] %d stages, profile=%s baseline_avg=%.2f max_lactate=%.2f",
        len(data), profile.type.value, profile.baseline_avg, profile.max_lactate,
    )

    if profile.type is ProfileType.ELITE_FLAT and len(data) >= config.min_stages_dmax:
        mod_dmax = try_mod_dmax_threshold(data, config, log)
        if mod_dmax is not None:
            log.debug("[Anaerobic Threshold] Using Modified D-max (%.2f @ %.2f mmol/L)",
                      mod_dmax.intensity, mod_dmax.lactate)
            return replace(mod_dmax, profile_type=profile.type)
        log.debug("[Anaerobic Threshold] Modified D-max failed, falling back to standard D-max")

    dmax = try_dmax_threshold(data, config, log)
    if dmax is not None:
        if not _dmax_is_implausible(dmax, profile, config):
            return replace(dmax, profile_type=profile.type)
        log.debug(
            "[Anaerobic Threshold] D-max at %.2f mmol/L rejected (max %.2f, baseline %.2f); likely LT1",
            dmax.lactate, profile.max_lactate, profile.baseline_avg,
        )

    target = config.anaerobic_target
    bracket = _second_crossing(data, target) or find_bracket(data, target)
    if bracket is not None:
        log.debug("[Anaerobic Threshold] Linear interpolation at %.1f mmol/L between stages %s", target, bracket)
        return _interpolated_result(data, bracket, target, Method.LINEAR_4_0, Confidence.LOW,
                                    profile_type=profile.type)

    log.debug("[Anaerobic Threshold] No interpolation possible, using estimation")
    return replace(estimate_threshold(data, target, config, log), profile_type=profile.type)


# ============================================================================
# MANUAL OVERRIDES
# ============================================================================

def _valid_override(manual_override: Optional[Dict[str, float]]) -> bool:
    if not manual_override:
        return False
    return manual_override.get("lactate", 0) > 0 and manual_override.get("intensity", 0) > 0


def calculate_aerobic_threshold_with_override(stages: Stages,
                                              manual_override: Optional[Dict[str, float]] = None,
                                              lt1_detector: Optional[LT1Detector] = detect_elite_lt1,
                                              config: ThresholdConfig = DEFAULT_CONFIG,
                                              log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """LT1 from a manual {'lactate', 'intensity'} override if given, else the aerobic resolver."""
    log = log or logger
    if _valid_override(manual_override):
        return apply_manual_threshold_override(stages, manual_override["lactate"],
                                               manual_override["intensity"], "LT1", log)
    return calculate_aerobic_threshold(stages, lt1_detector, config, log)


def calculate_anaerobic_threshold_with_override(stages: Stages,
                                                manual_override: Optional[Dict[str, float]] = None,
                                                config: ThresholdConfig = DEFAULT_CONFIG,
                                                log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """LT2 from a manual {'lactate', 'intensity'} override if given, else the anaerobic resolver."""
    log = log or logger
    if _valid_override(manual_override):
        return apply_manual_threshold_override(stages, manual_override["lactate"],
                                               manual_override["intensity"], "LT2", log)
    return calculate_anaerobic_threshold(stages, config, log)


# ============================================================================
# VISUALIZATION
# ============================================================================

def calculate_dmax_for_visualization(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                                     log: Optional[logging.Logger] = None) -> Optional[ThresholdResult]:
    """
    D-max curve analysis for plotting, whatever its confidence.

    Modified D-max for ELITE_FLAT profiles so the plotted chord and point
    match the LT2 resolver; standard D-max otherwise.
    """
    log = log or logger
    data = _as_data(stages, log)
    if len(data) < config.min_stages_dmax:
        return None

    profile = _profile(data, config, log)
    try:
        if profile.type is ProfileType.ELITE_FLAT:
            result = calculate_mod_dmax(data, config, log)
        else:
            result = calculate_dmax(data, config, log)
    except LactateAnalysisError as e:
        log.warning("D-max visualization calculation failed: %s", e)
        return None

    return replace(result, profile_type=profile.type)


# ============================================================================
# TABULAR SUMMARY
# ============================================================================

def stages_from_frame(df: pd.DataFrame) -> List[TestStage]:
    """
    Build test stages from a DataFrame.

    Expects 'lactate' and 'heart_rate' columns plus one of 'speed', 'power'
    or 'pace'. Empty cells are treated as missing.
    """
    intensity_columns = [u.stage_field for u in Unit if u.stage_field in df.columns]

    stages = []
    for row in df.to_dict("records"):
        intensity = {
            col: float(row[col]) for col in intensity_columns if pd.notna(row[col])
        }
        stages.append(TestStage(lactate=float(row["lactate"]), heart_rate=float(row["heart_rate"]),
                                **intensity))
    return stages


METRIC_LT1 = "LT1 (Aerobic Threshold)"
METRIC_LT2 = "LT2 (Anaerobic Threshold)"

_METHOD_METRICS = {
    Method.LOG_LOG: METRIC_LT1,
    Method.BASELINE_PLUS_0_3: METRIC_LT1,
    Method.BASELINE_PLUS_0_3_ESTIMATED: METRIC_LT1,
    Method.BASELINE_PLUS_0_5: METRIC_LT1,
    Method.BASELINE_PLUS_0_5_ESTIMATED: METRIC_LT1,
    Method.LINEAR_2_0: METRIC_LT1,
    Method.MANUAL_LT1: METRIC_LT1,
    Method.DMAX: METRIC_LT2,
    Method.MOD_DMAX: METRIC_LT2,
    Method.FALLBACK: METRIC_LT2,
    Method.EXPONENTIAL_RISE: METRIC_LT2,
    Method.BASELINE_PLUS_1_0: METRIC_LT2,
    Method.DICKHUTH: METRIC_LT2,
    Method.DICKHUTH_ESTIMATED: METRIC_LT2,
    Method.LINEAR_4_0: METRIC_LT2,
    Method.MANUAL_LT2: METRIC_LT2,
}


def get_metric_for_method(method: Method) -> str:
    """Physiological meaning of a method's result (LT1 or LT2)."""
    return _METHOD_METRICS.get(method, METRIC_LT2)


def analyze_lactate_thresholds(stages: Stages, config: ThresholdConfig = DEFAULT_CONFIG,
                               log: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Run the resolvers and every individual method on one test.

    Returns:
        DataFrame, one row per result, LT1 rows before LT2 rows. The resolved
        thresholds are flagged with selected=True.
    """
    log = log or logger
    data = _as_data(stages, log)
    points = data.to_points()
    profile = classify_athlete_profile(points, config, log)
    processed = preprocess_data(points, config, log)

    rows = []

    def add(name: str, compute: Callable[[], Optional[ThresholdResult]], metric: Optional[str] = None,
            selected: bool = False):
        try:
            result = compute()
        except LactateAnalysisError as e:
            log.warning("%s failed: %s", name, e)
            return
        if result is None:
            return
        row = replace(result, unit=data.unit).to_dict()
        row["metric"] = metric or get_metric_for_method(result.method)
        row["selected"] = selected
        rows.append(row)

    add("LT1", lambda: calculate_aerobic_threshold(data, config=config, log=log), METRIC_LT1, True)
    add("LT2", lambda: calculate_anaerobic_threshold(data, config, log), METRIC_LT2, True)
    add("D-max", lambda: calculate_dmax(data, config, log))
    add("Modified D-max", lambda: calculate_mod_dmax(data, config, log))
    add("Exponential rise", lambda: find_exponential_rise_point(data, config, log))
    add("Baseline + 1.0", lambda: calculate_baseline_plus_one(data, config, log))
    add("Dickhuth", lambda: calculate_dickhuth_threshold(data, config, log))
    add("Log-log", lambda: calculate_loglog_threshold(processed, config, log))
    add("Baseline plus", lambda: calculate_baseline_plus_threshold(processed, profile, config, log))

    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame(rows)

    metric_order = [METRIC_LT1, METRIC_LT2]
    df["metric"] = pd.Categorical(df["metric"], categories=metric_order, ordered=True)
    # pace falls as intensity rises
    df = df.sort_values(["metric", "selected", "intensity"],
                        ascending=[True, False, not data.unit.inverted])

    display_columns = ["metric", "method", "selected", "intensity", "unit", "lactate", "heart_rate",
                       "confidence", "r2", "warning", "profile_type"]
    return df[display_columns].reset_index(drop=True)
