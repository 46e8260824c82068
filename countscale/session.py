"""
Counting scale session.

A :class:`Session` bundles the current population, calibration and last
weighing result.  Sessions are immutable: every operation returns the next
session, which makes the workflow

    EMPTY -> PRODUCED -> CALIBRATED -> WEIGHED (-> WEIGHED ...)

explicit.  Producing again from any state starts over at ``PRODUCED`` and
drops the previous calibration, since its unit weight belongs to a
population that no longer exists.  ``reset`` returns to ``EMPTY``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from .sim.calibration import calibrate
from .sim.errors import CalibrationMissingError, EmptySampleError
from .sim.estimator import weigh_sample
from .sim.models import CalibrationResult, Population, WeighingResult
from .sim.population import (
    ConfigLike,
    RandomState,
    generate_mixed_parts,
    generate_parts,
    weight_distribution,
)
from .sim.sampling import take_sample

logger = logging.getLogger("countscale.session")


class SessionState(str, enum.Enum):
    EMPTY = "empty"
    PRODUCED = "produced"
    CALIBRATED = "calibrated"
    WEIGHED = "weighed"


@dataclass(frozen=True)
class Session:
    """Snapshot of the scale workflow."""

    population: Optional[Population] = None
    calibration: Optional[CalibrationResult] = None
    result: Optional[WeighingResult] = None

    @classmethod
    def empty(cls) -> "Session":
        return cls()

    @property
    def state(self) -> SessionState:
        if self.population is None:
            return SessionState.EMPTY
        if self.calibration is None:
            return SessionState.PRODUCED
        if self.result is None:
            return SessionState.CALIBRATED
        return SessionState.WEIGHED

    @property
    def is_calibrated(self) -> bool:
        return self.state in (SessionState.CALIBRATED, SessionState.WEIGHED)

    def reset(self) -> "Session":
        return Session.empty()

    def produce(
        self,
        config: Union[ConfigLike, Iterable[ConfigLike]],
        random_state: RandomState = None,
    ) -> "Session":
        """Run a production; a list of configs is treated as weight groups."""
        if isinstance(config, (list, tuple)):
            population = generate_mixed_parts(config, random_state=random_state)
        else:
            population = generate_parts(config, random_state=random_state)
        logger.info("Production finished with %d parts", len(population))
        return Session(population=population)

    def calibrate(
        self,
        reference_count: int,
        sample_size: Optional[int] = None,
        random_state: RandomState = None,
    ) -> "Session":
        """
        Draw a reference sample and calibrate against it.

        ``sample_size`` defaults to ``reference_count``; passing a different
        value simulates an operator who miscounted the reference parts.
        """
        if self.population is None or not len(self.population):
            raise EmptySampleError("No parts have been produced yet")
        size = reference_count if sample_size is None else sample_size
        sample = take_sample(self.population, size, random_state=random_state)
        calibration = calibrate(sample, reference_count)
        logger.info(
            "Calibrated on %d parts: unit weight %.5f",
            calibration.sample_size,
            calibration.estimated_unit_weight,
        )
        return replace(self, calibration=calibration, result=None)

    def weigh(
        self,
        sample_size: int,
        random_state: RandomState = None,
        calibration: Optional[CalibrationResult] = None,
    ) -> "Session":
        """
        Draw a sample of ``sample_size`` parts and estimate its count.

        An explicit ``calibration`` must belong to the current population;
        one left over from an earlier production run is rejected.
        """
        calibration = self.calibration if calibration is None else calibration
        if self.population is None or calibration is None:
            raise CalibrationMissingError("The scale must be calibrated before weighing")
        if calibration.population_id != self.population.population_id:
            raise CalibrationMissingError(
                "Calibration belongs to a previous production run; recalibrate first"
            )
        sample = take_sample(self.population, sample_size, random_state=random_state)
        result = weigh_sample(sample, calibration)
        logger.info(
            "Weighed %d parts: estimated %d (error %.2f%%)",
            result.sample_size,
            result.rounded_count,
            result.relative_error_percent,
        )
        return replace(self, calibration=calibration, result=result)

    def distribution(self) -> pd.DataFrame:
        return weight_distribution(self.population)

    def to_dict(self) -> Dict[str, Any]:
        population = self.population
        return {
            "state": self.state.value,
            "totalParts": len(population) if population is not None else 0,
            "meanWeight": population.mean_weight() if population is not None else None,
            "calibration": self.calibration.to_dict() if self.calibration else None,
            "result": self.result.to_dict() if self.result else None,
        }
