"""Checking weight sequences before they reach the table builder.

A :class:`ValidatedWeights` can only come out of :func:`validate`, which
checks the weights, or :func:`assume_valid`, which trusts the caller. The
constructor refuses any other caller, so the builder never sees weights that
skipped both paths.
"""

import logging
from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from vose_alias.dtypes import IndexType, resolve_index_type
from vose_alias.errors import (
    EmptyInputError,
    IndexRangeExceededError,
    NegativeWeightError,
    NoPositiveWeightError,
    NonFiniteWeightError,
    WeightValidationError,
)

logger = logging.getLogger(__name__)

_SEAL = object()


class ValidatedWeights:
    """A weight array that satisfies the builder's preconditions.

    The array is borrowed, not copied: a numpy float array passed to
    :func:`validate` is the same object as :attr:`weights`.
    """

    __slots__ = ("_index_type", "_weights")

    def __init__(
        self, weights: np.ndarray, index_type: IndexType, seal: object
    ) -> None:
        if seal is not _SEAL:
            raise TypeError(
                "ValidatedWeights can only be created by validate() or assume_valid()"
            )
        self._weights = weights
        self._index_type = index_type

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def index_type(self) -> IndexType:
        return self._index_type

    def __len__(self) -> int:
        return int(self._weights.shape[0])

    def __repr__(self) -> str:
        return f"ValidatedWeights(n={len(self)}, index_dtype={self._index_type.dtype})"


def _as_weight_array(weights: ArrayLike) -> np.ndarray:
    array = np.asarray(weights)
    if array.size == 0:
        return array.reshape(0).astype(np.float64, copy=False)
    if array.dtype.kind not in "biuf":
        raise TypeError(f"weights must be real numbers, got dtype {array.dtype}")
    if array.ndim != 1:
        raise WeightValidationError(
            f"weights must be one-dimensional, got shape {array.shape}"
        )
    return array


def validate(weights: ArrayLike, index_type: Any = None) -> ValidatedWeights:
    """Check ``weights`` and wrap them as :class:`ValidatedWeights`.

    Raises:
        EmptyInputError: there are no weights.
        NonFiniteWeightError: a weight is NaN or infinite.
        NegativeWeightError: a weight is negative.
        NoPositiveWeightError: every weight is zero.
        IndexRangeExceededError: ``len(weights) - 1`` does not fit in
            ``index_type``.
    """
    resolved = resolve_index_type(index_type)
    array = _as_weight_array(weights)

    n = array.shape[0]
    if n == 0:
        raise EmptyInputError()

    finite = np.isfinite(array)
    if not finite.all():
        i = int(np.argmin(finite))
        raise NonFiniteWeightError(i, float(array[i]))

    negative = array < 0
    if negative.any():
        i = int(np.argmax(negative))
        raise NegativeWeightError(i, float(array[i]))

    if not (array > 0).any():
        raise NoPositiveWeightError()

    if n - 1 > resolved.max_value:
        raise IndexRangeExceededError(n, resolved.max_value)

    return ValidatedWeights(array, resolved, _SEAL)


def assume_valid(weights: ArrayLike, index_type: Any = None) -> ValidatedWeights:
    """Wrap ``weights`` as :class:`ValidatedWeights` without checking them.

    Passing weights that :func:`validate` would reject is a logic error; the
    resulting table is meaningless.
    """
    array = np.asarray(weights)
    logger.debug("Skipping validation for %d weights", array.size)
    return ValidatedWeights(array, resolve_index_type(index_type), _SEAL)
