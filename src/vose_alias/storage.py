"""Storage layouts for the probability and alias columns of a table.

The builder writes through the :class:`TableStorage` accessors only, so the
construction algorithm is the same for every layout.

``FlatStorage`` keeps two parallel numpy arrays. ``PackedStorage`` groups
``K`` (probability, alias) pairs into one record padded to a cache line, so a
draw touches a single line at the cost of a ``divmod`` per access. The packed
layout always occupies at least one full line, which wastes space for very
small tables.
"""

from typing import Protocol, runtime_checkable

import numpy as np

from vose_alias.dtypes import IndexType
from vose_alias.errors import AllocationFailureError

DEFAULT_LINE_SIZE = 64
LAYOUTS = ("flat", "packed")


@runtime_checkable
class TableStorage(Protocol):
    layout: str

    def __len__(self) -> int: ...

    def get_probability(self, i: int) -> float: ...

    def set_probability(self, i: int, p: float) -> None: ...

    def get_alias(self, i: int) -> int: ...

    def set_alias(self, i: int, a: int) -> None: ...

    def probabilities(self) -> np.ndarray: ...

    def aliases(self) -> np.ndarray: ...

    @property
    def nbytes(self) -> int: ...

    def release(self) -> None: ...


class FlatStorage:
    """Parallel ``probability`` and ``alias`` arrays."""

    layout = "flat"

    def __init__(self, n: int, float_dtype: np.dtype, index_type: IndexType) -> None:
        self._n = n
        try:
            self._probability = np.zeros(n, dtype=float_dtype)
            self._alias = np.zeros(n, dtype=index_type.dtype)
        except MemoryError as exc:
            raise AllocationFailureError(
                f"could not allocate flat storage for {n} buckets"
            ) from exc

    def __len__(self) -> int:
        return self._n

    def get_probability(self, i: int) -> float:
        return float(self._probability[i])

    def set_probability(self, i: int, p: float) -> None:
        self._probability[i] = p

    def get_alias(self, i: int) -> int:
        return int(self._alias[i])

    def set_alias(self, i: int, a: int) -> None:
        self._alias[i] = a

    def probabilities(self) -> np.ndarray:
        return self._probability.copy()

    def aliases(self) -> np.ndarray:
        return self._alias.copy()

    @property
    def nbytes(self) -> int:
        return int(self._probability.nbytes + self._alias.nbytes)

    def release(self) -> None:
        self._probability = np.empty(0, dtype=self._probability.dtype)
        self._alias = np.empty(0, dtype=self._alias.dtype)


def block_capacity(
    float_dtype: np.dtype, index_dtype: np.dtype, line_size: int = DEFAULT_LINE_SIZE
) -> int:
    """Number of (probability, alias) pairs that fit in one ``line_size`` block."""
    pair = np.dtype(float_dtype).itemsize + np.dtype(index_dtype).itemsize
    return max(1, line_size // pair)


def block_dtype(
    float_dtype: np.dtype, index_dtype: np.dtype, line_size: int = DEFAULT_LINE_SIZE
) -> np.dtype:
    """Record dtype for one block: ``K`` probabilities, then ``K`` aliases."""
    float_dtype = np.dtype(float_dtype)
    index_dtype = np.dtype(index_dtype)
    capacity = block_capacity(float_dtype, index_dtype, line_size)
    alias_offset = capacity * float_dtype.itemsize
    used = alias_offset + capacity * index_dtype.itemsize
    return np.dtype(
        {
            "names": ["probability", "alias"],
            "formats": [(float_dtype, (capacity,)), (index_dtype, (capacity,))],
            "offsets": [0, alias_offset],
            "itemsize": max(used, line_size),
        }
    )


class PackedStorage:
    """Cache-line sized blocks of (probability, alias) pairs.

    Bucket ``i`` lives in block ``i // K`` at offset ``i % K``.
    """

    layout = "packed"

    def __init__(
        self,
        n: int,
        float_dtype: np.dtype,
        index_type: IndexType,
        line_size: int = DEFAULT_LINE_SIZE,
    ) -> None:
        if line_size < 1:
            raise ValueError(f"line_size must be positive, got {line_size}")
        self._n = n
        self.line_size = line_size
        self.capacity = block_capacity(float_dtype, index_type.dtype, line_size)
        n_blocks = max(1, -(-n // self.capacity))
        try:
            self._blocks = np.zeros(
                n_blocks, dtype=block_dtype(float_dtype, index_type.dtype, line_size)
            )
        except MemoryError as exc:
            raise AllocationFailureError(
                f"could not allocate {n_blocks} packed blocks for {n} buckets"
            ) from exc
        self._probability = self._blocks["probability"]
        self._alias = self._blocks["alias"]

    def __len__(self) -> int:
        return self._n

    @property
    def n_blocks(self) -> int:
        return int(self._blocks.shape[0])

    def get_probability(self, i: int) -> float:
        block, offset = divmod(i, self.capacity)
        return float(self._probability[block, offset])

    def set_probability(self, i: int, p: float) -> None:
        block, offset = divmod(i, self.capacity)
        self._probability[block, offset] = p

    def get_alias(self, i: int) -> int:
        block, offset = divmod(i, self.capacity)
        return int(self._alias[block, offset])

    def set_alias(self, i: int, a: int) -> None:
        block, offset = divmod(i, self.capacity)
        self._alias[block, offset] = a

    def probabilities(self) -> np.ndarray:
        return self._probability.reshape(-1)[: self._n].copy()

    def aliases(self) -> np.ndarray:
        return self._alias.reshape(-1)[: self._n].copy()

    @property
    def nbytes(self) -> int:
        return int(self._blocks.nbytes)

    def release(self) -> None:
        self._blocks = np.zeros(0, dtype=self._blocks.dtype)
        self._probability = self._blocks["probability"]
        self._alias = self._blocks["alias"]


def make_storage(
    layout: str,
    n: int,
    float_dtype: np.dtype,
    index_type: IndexType,
    line_size: int = DEFAULT_LINE_SIZE,
) -> FlatStorage | PackedStorage:
    if layout == "flat":
        return FlatStorage(n, float_dtype, index_type)
    if layout == "packed":
        return PackedStorage(n, float_dtype, index_type, line_size)
    raise ValueError(f"unknown layout {layout!r}; expected one of {', '.join(LAYOUTS)}")
