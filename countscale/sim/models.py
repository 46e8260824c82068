"""
Value types shared by the simulation core.

A production run turns a :class:`ProductionConfig` into a
:class:`Population`, an immutable arena of part weights.  Samples are index
views into that arena, so drawing a sample never copies or duplicates a
part.  Calibration and weighing results are frozen dataclasses that carry
everything the presentation layer needs; ``to_dict`` renders them as plain
JSON-ready data using the camelCase keys the web client expects.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional

import numpy as np

from .errors import InvalidConfigurationError

# Accepted spellings for ProductionConfig fields, JSON form first.
_CONFIG_KEYS = {
    "count": ("count",),
    "nominal_weight": ("nominalWeight", "nominal_weight"),
    "tolerance_percent": ("tolerancePercent", "tolerance_percent", "tolerance"),
    "variance": ("variance",),
}


@dataclass(frozen=True)
class Part:
    """One simulated physical unit."""

    weight: float


@dataclass(frozen=True)
class ProductionConfig:
    """
    Parameters of one production run.

    :param count: number of parts to produce, a positive integer.
    :param nominal_weight: target mean weight per part, strictly positive.
    :param tolerance_percent: per-part standard deviation expressed as a
                              percentage of ``nominal_weight``.
    :param variance: absolute variance of the part weight.  When given it
                     takes precedence over ``tolerance_percent``.
    """

    count: int
    nominal_weight: float
    tolerance_percent: float = 0.0
    variance: Optional[float] = None

    def __post_init__(self) -> None:
        errors: List[str] = []
        if isinstance(self.count, bool) or not isinstance(self.count, (int, np.integer)):
            errors.append("count must be an integer")
        elif self.count <= 0:
            errors.append("count must be positive")
        if not _is_finite_number(self.nominal_weight) or self.nominal_weight <= 0:
            errors.append("nominal_weight must be a positive number")
        if not _is_finite_number(self.tolerance_percent) or self.tolerance_percent < 0:
            errors.append("tolerance_percent must be non-negative")
        if self.variance is not None and (
            not _is_finite_number(self.variance) or self.variance < 0
        ):
            errors.append("variance must be non-negative")
        if errors:
            raise InvalidConfigurationError("; ".join(errors))

    @property
    def spread(self) -> float:
        """Standard deviation of a single part's weight."""
        if self.variance is not None:
            return math.sqrt(self.variance)
        return self.nominal_weight * self.tolerance_percent / 100.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProductionConfig":
        """Build a config from a JSON-style mapping (camelCase or snake_case keys)."""
        kwargs: Dict[str, Any] = {}
        for name, keys in _CONFIG_KEYS.items():
            for key in keys:
                if key in data and data[key] is not None:
                    kwargs[name] = data[key]
                    break
        missing = {"count", "nominal_weight"} - set(kwargs)
        if missing:
            raise InvalidConfigurationError(
                f"Production config missing required fields: {sorted(missing)}"
            )
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "count": int(self.count),
            "nominalWeight": float(self.nominal_weight),
            "tolerancePercent": float(self.tolerance_percent),
        }
        if self.variance is not None:
            data["variance"] = float(self.variance)
        return data


@dataclass(frozen=True, eq=False)
class Population:
    """Immutable batch of parts, stored as a read-only array of weights."""

    weights: np.ndarray
    population_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        weights = np.array(self.weights, dtype=float, copy=True)
        if weights.ndim != 1:
            raise ValueError("Population weights must be one-dimensional")
        if weights.size and not np.all(np.isfinite(weights) & (weights > 0)):
            raise ValueError("Population weights must be finite and positive")
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)

    def __len__(self) -> int:
        return int(self.weights.size)

    def __getitem__(self, index: int) -> Part:
        return Part(weight=float(self.weights[index]))

    def __iter__(self) -> Iterator[Part]:
        for weight in self.weights:
            yield Part(weight=float(weight))

    def parts(self) -> List[Part]:
        return list(self)

    def total_weight(self) -> float:
        return float(self.weights.sum())

    def mean_weight(self) -> float:
        if not len(self):
            return 0.0
        return float(self.weights.mean())


@dataclass(frozen=True, eq=False)
class Sample:
    """A view into a population selecting parts by index."""

    population: Population
    indices: np.ndarray

    def __post_init__(self) -> None:
        indices = np.array(self.indices, dtype=np.intp, copy=True)
        if indices.ndim != 1:
            raise ValueError("Sample indices must be one-dimensional")
        if indices.size:
            if indices.min() < 0 or indices.max() >= len(self.population):
                raise ValueError(
                    f"Sample indices must lie within 0..{len(self.population) - 1}"
                )
            if np.unique(indices).size != indices.size:
                raise ValueError("Sample indices must be distinct")
        indices.setflags(write=False)
        object.__setattr__(self, "indices", indices)

    def __len__(self) -> int:
        return int(self.indices.size)

    def __iter__(self) -> Iterator[Part]:
        for weight in self.weights:
            yield Part(weight=float(weight))

    @property
    def weights(self) -> np.ndarray:
        return self.population.weights[self.indices]

    @property
    def population_id(self) -> str:
        return self.population.population_id

    def total_weight(self) -> float:
        return float(self.weights.sum())


@dataclass(frozen=True)
class CalibrationResult:
    """Mean unit weight inferred from a reference sample of known count."""

    reference_count: int
    sample_size: int
    sample_total_weight: float
    estimated_unit_weight: float
    unit_weight_std_dev: Optional[float] = None
    population_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "referenceCount": self.reference_count,
            "sampleSize": self.sample_size,
            "sampleTotalWeight": self.sample_total_weight,
            "estimatedUnitWeight": self.estimated_unit_weight,
            "estimatedUnitWeightStdDev": self.unit_weight_std_dev,
        }


@dataclass(frozen=True)
class WeighingResult:
    """Count inferred for an unknown sample, with its error against ground truth."""

    sample_size: int
    sample_total_weight: float
    estimated_count: float
    rounded_count: int
    absolute_error: float
    relative_error_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sampleSize": self.sample_size,
            "sampleTotalWeight": self.sample_total_weight,
            "estimatedCount": self.estimated_count,
            "roundedCount": self.rounded_count,
            "absoluteError": self.absolute_error,
            "relativeErrorPercent": self.relative_error_percent,
        }


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
        return False
    return math.isfinite(value)
