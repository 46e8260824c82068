"""Derive a mean unit weight from a reference sample of known count."""

from __future__ import annotations

import numbers

import numpy as np

from .errors import EmptySampleError, InvalidConfigurationError
from .models import CalibrationResult, Sample


def calibrate(sample: Sample, reference_count: int) -> CalibrationResult:
    """
    Calibrate the scale against ``sample``, declared to hold ``reference_count`` parts.

    The unit weight is the plain quotient of the sample's total weight and
    the reference count; no rounding is applied.  The per-part standard
    deviation is reported when the sample holds at least two parts.
    """
    if len(sample) == 0:
        raise EmptySampleError("Cannot calibrate on an empty sample")
    if (
        isinstance(reference_count, bool)
        or not isinstance(reference_count, numbers.Integral)
        or reference_count <= 0
    ):
        raise InvalidConfigurationError(
            f"Reference count must be a positive integer, got {reference_count!r}"
        )
    weights = sample.weights
    total = float(weights.sum())
    std_dev = float(np.std(weights, ddof=1)) if weights.size >= 2 else None
    return CalibrationResult(
        reference_count=int(reference_count),
        sample_size=len(sample),
        sample_total_weight=total,
        estimated_unit_weight=total / int(reference_count),
        unit_weight_std_dev=std_dev,
        population_id=sample.population_id,
    )
