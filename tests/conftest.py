# Tests configuration for the lactate threshold engine
import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lactate_models import TestStage, LactateTestData


def _stages(intensity, lactate, heart_rate=None, field="speed"):
    if heart_rate is None:
        heart_rate = [120 + 10 * i for i in range(len(intensity))]
    return [
        TestStage(lactate=lac, heart_rate=hr, **{field: x})
        for x, lac, hr in zip(intensity, lactate, heart_rate)
    ]


@pytest.fixture
def build_stages():
    """Factory: build_stages(intensity, lactate, heart_rate=None, field='speed')."""
    return _stages


@pytest.fixture
def scenario_a():
    """Clear knee-shaped running test (km/h)."""
    return _stages(
        [8, 10, 12, 14, 16, 18],
        [1.0, 1.2, 1.8, 2.9, 4.8, 7.5],
        [130, 140, 150, 160, 170, 180],
    )


@pytest.fixture
def scenario_a_data(scenario_a):
    return LactateTestData.from_stages(scenario_a)


@pytest.fixture
def scenario_b():
    """Elite flat curve on the bike (watt)."""
    return _stages(
        [150, 175, 200, 225, 250, 275],
        [0.9, 1.0, 1.0, 1.1, 1.3, 1.6],
        [120, 128, 136, 144, 152, 160],
        field="power",
    )


@pytest.fixture
def scenario_c():
    """Lactate strictly linear in intensity (0.5 * speed)."""
    speeds = [8, 10, 12, 14, 16, 18]
    return _stages(speeds, [0.5 * s for s in speeds])


@pytest.fixture
def scenario_d():
    """Lactate never reaches 4.0 mmol/L."""
    return _stages(
        [8, 10, 12, 14, 16, 18],
        [1.0, 1.4, 1.8, 2.2, 2.6, 3.0],
        [130, 140, 150, 160, 170, 180],
    )


@pytest.fixture
def elite_rise():
    """Elite flat curve with a late, clear rise (watt)."""
    return _stages(
        [150, 175, 200, 225, 250, 275, 300],
        [0.9, 1.0, 1.0, 1.1, 1.4, 2.2, 4.0],
        [120, 128, 136, 144, 152, 160, 168],
        field="power",
    )


@pytest.fixture
def pace_test():
    """Scenario A lactate on a pace (min/km) test."""
    return _stages(
        [6.0, 5.5, 5.0, 4.5, 4.0, 3.5],
        [1.0, 1.2, 1.8, 2.9, 4.8, 7.5],
        [130, 140, 150, 160, 170, 180],
        field="pace",
    )
