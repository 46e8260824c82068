"""Infer the piece count of a sample from its weight."""

from __future__ import annotations

from typing import Optional

from .errors import CalibrationMissingError, EmptySampleError
from .models import CalibrationResult, Sample, WeighingResult


def weigh_sample(sample: Sample, calibration: Optional[CalibrationResult]) -> WeighingResult:
    """
    Estimate how many parts ``sample`` holds using ``calibration``.

    The error is measured between the rounded estimate and the sample's true
    size, which is known in simulation.
    """
    if calibration is None:
        raise CalibrationMissingError("The scale must be calibrated before weighing")
    true_count = len(sample)
    if true_count == 0:
        raise EmptySampleError("Cannot weigh an empty sample")
    total = sample.total_weight()
    estimated = total / calibration.estimated_unit_weight
    rounded = int(round(estimated))
    absolute_error = float(abs(rounded - true_count))
    return WeighingResult(
        sample_size=true_count,
        sample_total_weight=total,
        estimated_count=estimated,
        rounded_count=rounded,
        absolute_error=absolute_error,
        relative_error_percent=absolute_error / true_count * 100.0,
    )
