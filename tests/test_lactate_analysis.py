"""Tests for lactate_analysis.py: curve fit, D-max geometry, confidence, D-max variants."""

import logging
import math

import numpy as np
import pytest

import lactate_analysis
from lactate_analysis import (
    calculate_confidence,
    calculate_dmax,
    calculate_mod_dmax,
    check_monotonicity,
    find_max_perpendicular_distance,
    find_modified_start_index,
    fit_polynomial_3rd,
)
from lactate_config import DEFAULT_CONFIG
from lactate_errors import ArrayLengthMismatchError, InsufficientDataError
from lactate_models import Confidence, LactateTestData, Method, PolynomialCoefficients, Unit


# =========================================================================
# Curve fitting
# =========================================================================

class TestFitPolynomial:
    def test_recovers_exact_cubic(self):
        """Noise-free cubic data gives back its coefficients and R² = 1."""
        x = np.array([8, 10, 12, 14, 16, 18], dtype=float)
        y = 0.01 * x ** 3 - 0.2 * x ** 2 + 1.5 * x - 2
        coeffs = fit_polynomial_3rd(x, y)

        assert coeffs.a == pytest.approx(0.01, abs=1e-6)
        assert coeffs.b == pytest.approx(-0.2, abs=1e-5)
        assert coeffs.c == pytest.approx(1.5, abs=1e-4)
        assert coeffs.d == pytest.approx(-2, abs=1e-3)
        assert coeffs.r2 == pytest.approx(1.0)
        assert len(coeffs.predictions) == 6

    def test_r2_high_for_knee_curve(self):
        coeffs = fit_polynomial_3rd([8, 10, 12, 14, 16, 18], [1.0, 1.2, 1.8, 2.9, 4.8, 7.5])
        assert coeffs.r2 > 0.95

    def test_evaluates_like_cubic(self):
        coeffs = PolynomialCoefficients(a=1, b=2, c=3, d=4, r2=1.0)
        assert coeffs(2.0) == 8 + 8 + 6 + 4

    def test_length_mismatch_raises(self):
        with pytest.raises(ArrayLengthMismatchError):
            fit_polynomial_3rd([1, 2, 3, 4], [1, 2, 3])

    def test_three_points_raise(self):
        with pytest.raises(InsufficientDataError):
            fit_polynomial_3rd([1, 2, 3], [1, 2, 3])


# =========================================================================
# Geometry
# =========================================================================

class TestMaxPerpendicularDistance:
    def test_parabola_under_chord(self):
        """y = x² under the chord from (0,0) to (2,4) peaks at x = 1."""
        coeffs = PolynomialCoefficients(a=0, b=1, c=0, d=0, r2=1.0)
        point = find_max_perpendicular_distance(coeffs, 2.0, 0.0, 0.0, 2.0)

        assert point['intensity'] == pytest.approx(1.0)
        assert point['lactate'] == pytest.approx(1.0)
        assert point['distance'] == pytest.approx(1 / math.sqrt(5))

    def test_reversed_range(self):
        """x_min > x_max (pace tests) searches the same segment."""
        coeffs = PolynomialCoefficients(a=0, b=1, c=0, d=0, r2=1.0)
        point = find_max_perpendicular_distance(coeffs, 2.0, 0.0, 2.0, 0.0)
        assert point['intensity'] == pytest.approx(1.0)

    def test_sampling_resolution(self):
        """Located within one sampling step of the analytic maximum."""
        coeffs = PolynomialCoefficients(a=1, b=0, c=0, d=0, r2=1.0)
        point = find_max_perpendicular_distance(coeffs, 1.0, 0.0, 0.0, 1.0)
        step = 1.0 / DEFAULT_CONFIG.dmax_samples
        assert abs(point['intensity'] - 1 / math.sqrt(3)) <= step


class TestConfidence:
    def test_poor_fit_is_low(self):
        assert calculate_confidence(0.85, 1.0, [1.0, 5.0]) == Confidence.LOW

    def test_high(self):
        assert calculate_confidence(0.97, 0.5, [1.0, 5.0]) == Confidence.HIGH

    def test_medium_on_r2(self):
        assert calculate_confidence(0.92, 0.5, [1.0, 5.0]) == Confidence.MEDIUM

    def test_medium_on_distance(self):
        assert calculate_confidence(0.97, 0.3, [1.0, 5.0]) == Confidence.MEDIUM

    def test_near_linear_is_low(self):
        assert calculate_confidence(0.99, 0.1, [1.0, 5.0]) == Confidence.LOW

    def test_zero_range_is_low(self):
        assert calculate_confidence(0.99, 0.1, [2.0, 2.0, 2.0]) == Confidence.LOW


class TestMonotonicity:
    def test_increasing(self):
        assert check_monotonicity([1.0, 1.5, 2.0, 3.0])

    def test_small_dip_ignored(self):
        assert check_monotonicity([1.0, 1.5, 1.35, 2.0, 1.9])

    def test_one_violation_tolerated(self):
        assert check_monotonicity([1.0, 2.0, 1.7, 3.0])

    def test_two_violations(self):
        assert not check_monotonicity([1.0, 2.0, 1.7, 3.0, 2.5])


# =========================================================================
# Standard D-max
# =========================================================================

class TestDmax:
    def test_scenario_a_knee(self, scenario_a_data):
        result = calculate_dmax(scenario_a_data)

        assert result.method == Method.DMAX
        assert result.confidence in (Confidence.MEDIUM, Confidence.HIGH)
        assert 12 < result.intensity < 16
        assert result.unit == Unit.KMH
        assert result.baseline_start_intensity == 8.0
        assert result.dmax_distance > 0
        assert 150 < result.heart_rate < 170

    def test_scenario_c_linear_is_low(self, scenario_c):
        data = LactateTestData.from_stages(scenario_c)
        assert calculate_dmax(data).confidence == Confidence.LOW
        assert calculate_mod_dmax(data).confidence == Confidence.LOW

    def test_requires_four_stages(self):
        data = LactateTestData([8, 10, 12], [1.0, 2.0, 4.0], [130, 140, 150])
        with pytest.raises(InsufficientDataError):
            calculate_dmax(data)

    def test_four_stages_enough(self):
        data = LactateTestData([8, 10, 12, 14], [1.0, 1.5, 2.5, 5.0], [130, 140, 150, 160])
        assert calculate_dmax(data).method in (Method.DMAX, Method.FALLBACK)

    def test_poor_fit_falls_back_to_4mmol(self):
        data = LactateTestData([8, 10, 12, 14, 16, 18], [1.0, 3.0, 1.0, 3.0, 1.0, 3.0],
                               [130, 140, 150, 160, 170, 180])
        result = calculate_dmax(data)

        assert result.method == Method.FALLBACK
        assert result.confidence == Confidence.LOW
        assert result.lactate == 4.0
        # never crosses 4.0: last stage
        assert result.intensity == 18.0
        assert result.warning.startswith("Poor polynomial fit (R²=")

    def test_fallback_interpolates_first_crossing(self, scenario_a_data):
        config = DEFAULT_CONFIG.with_overrides(min_r2=1.01)
        result = calculate_dmax(scenario_a_data, config)

        assert result.method == Method.FALLBACK
        assert result.intensity == pytest.approx(14 + 2 * 1.1 / 1.9)
        assert result.heart_rate == 166

    def test_non_monotonic_warns(self, caplog):
        data = LactateTestData([8, 10, 12, 14, 16, 18, 20], [1.0, 1.5, 1.2, 2.5, 2.2, 4.0, 8.0],
                               [130, 140, 150, 160, 170, 180, 190])
        with caplog.at_level(logging.WARNING, logger="lactate_engine.dmax"):
            result = calculate_dmax(data)

        assert result.warning is not None
        assert any("monotonically" in r.getMessage() for r in caplog.records)

    def test_injected_logger(self):
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        log = logging.getLogger("test.injected")
        log.setLevel(logging.DEBUG)
        log.addHandler(Collect())
        data = LactateTestData([8, 10, 12, 14, 16, 18], [1.0, 1.2, 1.8, 2.9, 4.8, 7.5],
                               [130, 140, 150, 160, 170, 180])
        calculate_dmax(data, log=log)
        assert records

    def test_deterministic(self, scenario_a_data):
        assert calculate_dmax(scenario_a_data) == calculate_dmax(scenario_a_data)

    def test_pace_test(self, pace_test):
        data = LactateTestData.from_stages(pace_test)
        result = calculate_dmax(data)

        assert result.unit == Unit.MIN_PER_KM
        assert 3.5 <= result.intensity <= 6.0


# =========================================================================
# Bishop Modified D-max
# =========================================================================

class TestModifiedStartIndex:
    def test_anchor_before_rise(self):
        anchor = find_modified_start_index([1.0, 1.2, 1.8, 2.9, 4.8, 7.5])
        assert anchor['baseline'] == pytest.approx(1.0)
        assert anchor['rise_index'] == 2
        assert anchor['start_index'] == 1

    def test_rise_at_first_stage(self):
        anchor = find_modified_start_index([2.0, 1.0, 1.0, 1.0, 1.0, 1.0])
        assert anchor['rise_index'] == 0
        assert anchor['start_index'] == 0

    def test_no_rise_uses_midpoint(self, caplog):
        with caplog.at_level(logging.WARNING, logger="lactate_engine.dmax"):
            anchor = find_modified_start_index([1.0, 1.0, 1.1, 1.1, 1.2, 1.2])

        assert anchor['rise_index'] is None
        assert anchor['start_index'] == 3
        assert any("No rise detected" in r.getMessage() for r in caplog.records)


class TestModDmax:
    def test_scenario_a(self, scenario_a_data):
        result = calculate_mod_dmax(scenario_a_data)

        assert result.method == Method.MOD_DMAX
        assert result.baseline_start_intensity == 10.0
        assert 10 <= result.intensity <= 18

    def test_steeper_chord_lands_later(self, scenario_a_data):
        """Steeper baseline moves the point towards LT2."""
        dmax = calculate_dmax(scenario_a_data)
        mod = calculate_mod_dmax(scenario_a_data)
        assert mod.intensity >= dmax.intensity

    def test_elite_rise(self, elite_rise):
        data = LactateTestData.from_stages(elite_rise)
        result = calculate_mod_dmax(data)

        assert result.method == Method.MOD_DMAX
        assert result.unit == Unit.WATT
        assert result.baseline_start_intensity == 225.0
        assert 225 <= result.intensity <= 300

    def test_requires_four_stages(self):
        data = LactateTestData([8, 10, 12], [1.0, 2.0, 4.0], [130, 140, 150])
        with pytest.raises(InsufficientDataError):
            calculate_mod_dmax(data)

    def test_no_rise_keeps_monotonicity_warning(self, monkeypatch):
        monkeypatch.setattr(lactate_analysis, "check_monotonicity", lambda *a, **k: False)
        data = LactateTestData([8, 10, 12, 14, 16, 18], [1.0, 1.05, 1.1, 1.15, 1.2, 1.25],
                               [130, 140, 150, 160, 170, 180])
        result = calculate_mod_dmax(data)

        assert result.method == Method.MOD_DMAX
        assert "not monotonically increasing" in result.warning
        assert "No lactate rise" in result.warning
