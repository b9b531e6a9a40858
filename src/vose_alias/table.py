"""The built alias table."""

from types import TracebackType

import numpy as np

from vose_alias.conformance import (
    ChiSquaredResult,
    chi_squared_test,
    implied_distribution,
)
from vose_alias.dtypes import IndexType
from vose_alias.sampler import NumpySource, UniformSource, draw, sample_many
from vose_alias.storage import FlatStorage, PackedStorage


class AliasTable:
    """An immutable probability/alias table over ``n`` buckets.

    Tables are created by :func:`vose_alias.build`. They hold their storage
    until :meth:`close` is called or a ``with`` block exits; any access after
    that raises ``ValueError``.
    """

    def __init__(
        self,
        storage: FlatStorage | PackedStorage,
        float_dtype: np.dtype,
        index_type: IndexType,
    ) -> None:
        self._storage = storage
        self._float_dtype = float_dtype
        self._index_type = index_type
        self._closed = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._storage.release()
            self._closed = True

    def __enter__(self) -> "AliasTable":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def storage(self) -> FlatStorage | PackedStorage:
        if self._closed:
            raise ValueError("alias table has been released")
        return self._storage

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.storage)

    @property
    def layout(self) -> str:
        return self.storage.layout

    @property
    def float_dtype(self) -> np.dtype:
        return self._float_dtype

    @property
    def index_type(self) -> IndexType:
        return self._index_type

    @property
    def nbytes(self) -> int:
        return self.storage.nbytes

    def _check_index(self, i: int) -> int:
        n = len(self)
        if not 0 <= i < n:
            raise IndexError(f"bucket index {i} out of range for {n} buckets")
        return i

    def probability(self, i: int) -> float:
        return self.storage.get_probability(self._check_index(i))

    def alias(self, i: int) -> int:
        return self.storage.get_alias(self._check_index(i))

    def probabilities(self) -> np.ndarray:
        return self.storage.probabilities()

    def aliases(self) -> np.ndarray:
        return self.storage.aliases()

    # -------------------------------------------------------------------------
    # Sampling
    # -------------------------------------------------------------------------

    def sample(self, source: UniformSource) -> int:
        return draw(self, source)

    def sample_many(self, source: UniformSource, count: int) -> list[int]:
        return sample_many(self, source, count)

    def implied_distribution(self) -> np.ndarray:
        return implied_distribution(self)

    def test_distribution(
        self, samples: int, source: UniformSource | None = None
    ) -> ChiSquaredResult:
        """Chi-squared check of ``samples`` draws against the table's own
        implied distribution. Uses a fresh ``NumpySource`` when no source is
        given.
        """
        if source is None:
            source = NumpySource()
        return chi_squared_test(self, source, samples)

    def __repr__(self) -> str:
        if self._closed:
            return "AliasTable(<released>)"
        return (
            f"AliasTable(n={len(self)}, layout={self.layout!r}, "
            f"float_dtype={self._float_dtype}, index_dtype={self._index_type.dtype})"
        )
