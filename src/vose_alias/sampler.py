"""Drawing indices from a built alias table.

The sampler owns no randomness. Each call takes a :class:`UniformSource`
supplied by the caller; ``random.Random`` already satisfies it, and
:class:`NumpySource` adapts a ``numpy.random.Generator``. A built table is
never written to here, so threads may share one table as long as each uses
its own source.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from vose_alias.table import AliasTable


@runtime_checkable
class UniformSource(Protocol):
    def randrange(self, stop: int) -> int:
        """Return an integer uniformly distributed in ``[0, stop)``."""
        ...

    def random(self) -> float:
        """Return a float uniformly distributed in ``[0, 1)``."""
        ...


class NumpySource:
    """:class:`UniformSource` backed by a ``numpy.random.Generator``."""

    def __init__(
        self, generator: np.random.Generator | None = None, seed: int | None = None
    ) -> None:
        if generator is not None and seed is not None:
            raise ValueError("pass either generator or seed, not both")
        if generator is None:
            generator = np.random.default_rng(seed)
        self.generator = generator

    def randrange(self, stop: int) -> int:
        return int(self.generator.integers(stop))

    def random(self) -> float:
        return float(self.generator.random())


def draw(table: "AliasTable", source: UniformSource) -> int:
    """Draw one index from ``table``.

    Picks bucket ``i`` uniformly, then keeps ``i`` when a uniform ``u``
    satisfies ``u < probability[i]`` and returns ``alias[i]`` otherwise. The
    comparison is strict so a bucket with probability 0 never keeps itself.
    """
    storage = table.storage
    i = source.randrange(len(storage))
    u = source.random()
    if u < storage.get_probability(i):
        return i
    return storage.get_alias(i)


def sample_many(table: "AliasTable", source: UniformSource, count: int) -> list[int]:
    """Draw ``count`` independent indices from ``table``."""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    return [draw(table, source) for _ in range(count)]
