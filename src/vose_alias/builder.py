"""Building alias tables with Vose's Alias Method.

See https://www.keithschwarz.com/darts-dice-coins/ for a walkthrough of the
method. Construction is O(n): each pass of the main loop resolves one bucket
for good.
"""

import logging
import math
from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from vose_alias.config import AliasConfig
from vose_alias.dtypes import resolve_float_dtype
from vose_alias.errors import AllocationFailureError, InvalidWeightsError
from vose_alias.storage import (
    DEFAULT_LINE_SIZE,
    FlatStorage,
    PackedStorage,
    make_storage,
)
from vose_alias.summation import compensated_sum
from vose_alias.table import AliasTable
from vose_alias.validation import ValidatedWeights, assume_valid, validate

logger = logging.getLogger(__name__)


def _normalizing_total(weights: np.ndarray, config: AliasConfig) -> float | None:
    """Compensated total of the weights, or None when no sum is needed."""
    if not config.needs_sum:
        return None
    total = compensated_sum(weights)
    if not (math.isfinite(total) and total > 0):
        raise InvalidWeightsError(total)
    return total


def _scale(p: np.ndarray, total: float | None) -> None:
    """Scale ``p`` in place so it sums to ``n``.

    Dividing by the total before multiplying by ``n`` keeps tiny totals from
    overflowing a combined ``n / total`` factor.
    """
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        if total is not None:
            p /= total
        p *= p.shape[0]
    if not (np.isfinite(p).all() and (p > 0).any()):
        raise InvalidWeightsError(total if total is not None else 1.0)


def _working_copy(
    weights: np.ndarray, float_dtype: np.dtype, can_mutate: bool
) -> np.ndarray:
    if (
        can_mutate
        and isinstance(weights, np.ndarray)
        and weights.dtype == float_dtype
        and weights.flags.writeable
    ):
        return weights
    try:
        return np.array(weights, dtype=float_dtype)
    except MemoryError as exc:
        raise AllocationFailureError(
            f"could not allocate scratch weights for {weights.shape[0]} buckets"
        ) from exc


def _fill(storage: FlatStorage | PackedStorage, p: np.ndarray) -> int:
    """Run the light/heavy redistribution over ``p``, writing into ``storage``.

    ``p`` must already sum to ``n``. Returns the number of light buckets left
    over when the heavy worklist ran dry, which only happens through rounding.
    """
    below = p < 1
    light: list[int] = np.flatnonzero(below).tolist()
    heavy: list[int] = np.flatnonzero(~below).tolist()

    while light and heavy:
        small = light.pop()
        large = heavy.pop()
        storage.set_probability(small, p[small])
        storage.set_alias(small, large)
        p[large] = (p[large] + p[small]) - 1
        if p[large] < 1:
            light.append(large)
        else:
            heavy.append(large)

    for i in heavy:
        storage.set_probability(i, 1.0)
        storage.set_alias(i, i)

    # Only reachable through floating point error.
    for i in light:
        storage.set_probability(i, 1.0)
        storage.set_alias(i, i)

    return len(light)


def build(
    validated: ValidatedWeights,
    config: AliasConfig | None = None,
    *,
    dtype: Any = None,
    layout: str = "flat",
    line_size: int = DEFAULT_LINE_SIZE,
) -> AliasTable:
    """Build an :class:`AliasTable` from validated weights.

    Args:
        validated: Weights from :func:`validate` or :func:`assume_valid`.
        config: Flags for skipping work; defaults to ``AliasConfig()``.
        dtype: Float dtype for the probabilities. Defaults to the weights'
            dtype when it is floating, else float64.
        layout: ``"flat"`` or ``"packed"``.
        line_size: Block size in bytes for the packed layout.

    Raises:
        InvalidWeightsError: The weights' total is not a positive finite
            number.
        AllocationFailureError: Storage could not be allocated.
    """
    if not isinstance(validated, ValidatedWeights):
        raise TypeError(
            f"build() needs ValidatedWeights from validate() or assume_valid(), "
            f"got {type(validated).__name__}"
        )
    if config is None:
        config = AliasConfig()

    weights = validated.weights
    n = len(validated)
    float_dtype = resolve_float_dtype(dtype, weights)
    logger.debug(
        "Building alias table: n=%d layout=%s dtype=%s config=%s",
        n,
        layout,
        float_dtype,
        config,
    )

    total = _normalizing_total(weights, config)
    storage = make_storage(layout, n, float_dtype, validated.index_type, line_size)
    try:
        p = _working_copy(weights, float_dtype, config.can_mutate)
        if not config.pre_scaled:
            _scale(p, total)
        stragglers = _fill(storage, p)
    except BaseException:
        storage.release()
        raise

    if stragglers:
        logger.debug("Resolved %d light buckets left over by rounding", stragglers)
    return AliasTable(storage, float_dtype, validated.index_type)


def build_from_weights(
    weights: ArrayLike,
    *,
    index_type: Any = None,
    dtype: Any = None,
    layout: str = "flat",
    line_size: int = DEFAULT_LINE_SIZE,
    **options: bool,
) -> AliasTable:
    """Validate ``weights`` and build a table in one call.

    ``options`` are the :class:`AliasConfig` flags. ``weights_are_validated=True``
    skips validation, as :func:`assume_valid` does.
    """
    weights_are_validated = options.pop("weights_are_validated", False)
    config = AliasConfig.from_options(**options)
    if weights_are_validated:
        validated = assume_valid(weights, index_type)
    else:
        validated = validate(weights, index_type)
    return build(validated, config, dtype=dtype, layout=layout, line_size=line_size)
