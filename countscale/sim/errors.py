"""
Error types raised by the counting scale simulation core.

All of them derive from ``ValueError`` so callers that only care about
"bad input" can catch a single type, while the HTTP layer maps each one to
a specific status code.
"""

from __future__ import annotations


class CountingScaleError(ValueError):
    """Base class for all simulation errors."""


class InvalidConfigurationError(CountingScaleError):
    """Production parameters or a reference count are out of range."""


class SampleSizeOutOfRangeError(CountingScaleError):
    """Requested sample size is not within 1..len(population)."""


class CalibrationMissingError(CountingScaleError):
    """Weighing attempted without a valid calibration for the current population."""


class EmptySampleError(CountingScaleError):
    """Calibration or weighing attempted on a sample without parts."""
