"""Numeric representations for probabilities and alias indices."""

from dataclasses import dataclass
from typing import Any

import numpy as np

DEFAULT_INDEX_DTYPE = np.dtype(np.uint64)
DEFAULT_FLOAT_DTYPE = np.dtype(np.float64)


@dataclass(frozen=True)
class IndexType:
    """Integer representation used to store alias indices.

    ``max_value`` defaults to the largest value ``dtype`` can hold. It may be
    set lower to reserve part of the range, but never higher.
    """

    dtype: np.dtype
    max_value: int

    @classmethod
    def of(
        cls, dtype: Any = DEFAULT_INDEX_DTYPE, max_value: int | None = None
    ) -> "IndexType":
        resolved = np.dtype(dtype)
        if not np.issubdtype(resolved, np.integer):
            raise TypeError(f"index dtype must be an integer type, got {resolved}")
        limit = int(np.iinfo(resolved).max)
        if max_value is None:
            max_value = limit
        if not 0 <= max_value <= limit:
            raise ValueError(
                f"max_value must be between 0 and {limit} for {resolved}, "
                f"got {max_value}"
            )
        return cls(resolved, max_value)

    @property
    def itemsize(self) -> int:
        return self.dtype.itemsize


def resolve_index_type(index_type: Any) -> IndexType:
    """Accept an ``IndexType``, a numpy integer dtype, or ``None``."""
    if isinstance(index_type, IndexType):
        return index_type
    if index_type is None:
        return IndexType.of(DEFAULT_INDEX_DTYPE)
    return IndexType.of(index_type)


def resolve_float_dtype(dtype: Any, weights: np.ndarray | None = None) -> np.dtype:
    """Pick the probability dtype.

    An explicit ``dtype`` wins; otherwise floating weights keep their own
    dtype and anything else is promoted to float64.
    """
    if dtype is not None:
        resolved = np.dtype(dtype)
        if not np.issubdtype(resolved, np.floating):
            raise TypeError(
                f"probability dtype must be a floating type, got {resolved}"
            )
        return resolved
    if weights is not None and np.issubdtype(weights.dtype, np.floating):
        return weights.dtype
    return DEFAULT_FLOAT_DTYPE
