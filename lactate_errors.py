"""Errors raised by the lactate threshold engine."""


class LactateAnalysisError(ValueError):
    """Base class for invalid or unusable lactate test input."""


class InsufficientDataError(LactateAnalysisError):
    """Too few stages for the requested method."""


class ArrayLengthMismatchError(LactateAnalysisError):
    """Intensity, lactate and heart rate arrays differ in length."""


class NoValidIntensityFieldError(LactateAnalysisError):
    """A stage has none of speed, power or pace populated."""


class MixedUnitsError(LactateAnalysisError):
    """Stages of one test carry different intensity units."""


class UnsortedStagesError(LactateAnalysisError):
    """Stages are not ordered by ascending intensity."""


class InvalidMeasurementError(LactateAnalysisError):
    """A stage carries a negative lactate or a non-positive heart rate."""
