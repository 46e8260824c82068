"""Uniform random sampling without replacement over a population arena."""

from __future__ import annotations

import numbers

import numpy as np

from .errors import SampleSizeOutOfRangeError
from .models import Population, Sample
from .population import RandomState


def take_sample(population: Population, size: int, random_state: RandomState = None) -> Sample:
    """
    Select ``size`` distinct parts of ``population`` uniformly at random.

    Sizes outside ``1..len(population)`` are rejected rather than clamped.
    """
    if isinstance(size, bool) or not isinstance(size, numbers.Integral):
        raise SampleSizeOutOfRangeError(f"Sample size must be an integer, got {size!r}")
    available = len(population)
    if size <= 0 or size > available:
        raise SampleSizeOutOfRangeError(
            f"Sample size {size} outside the valid range 1..{available}"
        )
    rng = np.random.default_rng(random_state)
    indices = rng.choice(available, size=int(size), replace=False)
    return Sample(population=population, indices=indices)
