"""
Synthetic production of parts.

Weights are drawn from a normal distribution centred on the nominal weight
and truncated symmetrically at three standard deviations, so the mean of a
large batch converges to the nominal value while outliers stay physically
plausible.  For very wide tolerances the truncation half-width is capped
below the nominal weight, keeping both bounds symmetric and every part
strictly positive.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from .errors import InvalidConfigurationError
from .models import Population, ProductionConfig

logger = logging.getLogger("countscale.sim.population")

TRUNCATION_SIGMAS = 3.0
MIN_WEIGHT_FRACTION = 1e-3

RandomState = Union[None, int, np.random.Generator]
ConfigLike = Union[ProductionConfig, Mapping[str, Any]]


def _as_config(config: ConfigLike) -> ProductionConfig:
    if isinstance(config, ProductionConfig):
        return config
    if isinstance(config, Mapping):
        return ProductionConfig.from_dict(config)
    raise InvalidConfigurationError(f"Unsupported production config: {type(config)}")


def _draw_weights(config: ProductionConfig, rng: np.random.Generator) -> np.ndarray:
    nominal = float(config.nominal_weight)
    spread = config.spread
    if spread == 0:
        return np.full(config.count, nominal, dtype=float)
    weights = rng.normal(loc=nominal, scale=spread, size=config.count)
    # Symmetric bounds keep the mean at nominal; the cap keeps them positive.
    bound = min(TRUNCATION_SIGMAS * spread, nominal * (1.0 - MIN_WEIGHT_FRACTION))
    return np.clip(weights, nominal - bound, nominal + bound)


def generate_parts(config: ConfigLike, random_state: RandomState = None) -> Population:
    """
    Produce a fresh population according to ``config``.

    :param config: a :class:`ProductionConfig` or an equivalent mapping.
    :param random_state: seed or ``numpy.random.Generator``; ``None`` uses
                         fresh OS entropy.
    :returns: a new :class:`Population` of exactly ``config.count`` parts.
    """
    config = _as_config(config)
    rng = np.random.default_rng(random_state)
    population = Population(weights=_draw_weights(config, rng))
    logger.debug(
        "Produced %d parts (nominal=%s, spread=%.4f, mean=%.4f)",
        len(population),
        config.nominal_weight,
        config.spread,
        population.mean_weight(),
    )
    return population


def generate_mixed_parts(
    configs: Iterable[ConfigLike], random_state: RandomState = None
) -> Population:
    """Produce one population from several weight groups."""
    resolved = [_as_config(config) for config in configs]
    if not resolved:
        raise InvalidConfigurationError("At least one weight group is required")
    rng = np.random.default_rng(random_state)
    chunks: List[np.ndarray] = [_draw_weights(config, rng) for config in resolved]
    population = Population(weights=np.concatenate(chunks))
    logger.debug("Produced %d parts from %d groups", len(population), len(resolved))
    return population


def weight_distribution(population: Optional[Population]) -> pd.DataFrame:
    """
    Histogram of part weights rounded to one decimal place.

    Returns a DataFrame with columns ``weight`` and ``count`` sorted by
    ascending weight, suitable for a bar chart.
    """
    if population is None or not len(population):
        return pd.DataFrame({"weight": pd.Series(dtype=float), "count": pd.Series(dtype=int)})
    rounded = pd.Series(np.round(population.weights, 1), name="weight")
    counts = rounded.value_counts().sort_index()
    return pd.DataFrame(
        {"weight": counts.index.to_numpy(dtype=float), "count": counts.to_numpy(dtype=int)}
    )
