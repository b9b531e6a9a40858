"""Compensated (Kahan) summation of weight sequences.

Naive left-to-right addition of many small weights onto a large running total
drops their low-order bits. Kahan summation carries the lost part forward in a
separate compensation term. The lane-parallel variant runs one compensated
accumulator per lane over a numpy block, which keeps the inner loop in numpy
while giving the same result within floating tolerance.
"""

from collections.abc import Iterable

import numpy as np
from numpy.typing import ArrayLike

DEFAULT_LANES = 32


def kahan_sum(
    values: Iterable[float], total: float = 0.0, compensation: float = 0.0
) -> float:
    """Sum ``values`` with Kahan compensation.

    ``total`` and ``compensation`` seed the accumulator, so a partial sum
    computed elsewhere can be continued here.
    """
    for x in values:
        corrected = x - compensation
        new_total = total + corrected
        compensation = (new_total - total) - corrected
        total = new_total
    return float(total)


def kahan_sum_lanes(values: ArrayLike, lanes: int = DEFAULT_LANES) -> float:
    """Sum ``values`` with one compensated accumulator per lane.

    The leading ``lanes * rows`` values are viewed as a ``(rows, lanes)``
    block and accumulated row by row. The lane totals are then reduced and
    the remainder is finished with :func:`kahan_sum`.
    """
    if lanes < 1:
        raise ValueError(f"lanes must be at least 1, got {lanes}")

    data = np.asarray(values)
    if not np.issubdtype(data.dtype, np.floating):
        data = data.astype(np.float64)
    data = data.ravel()

    rows = data.size // lanes
    if rows == 0:
        return kahan_sum(data.tolist())

    block = data[: rows * lanes].reshape(rows, lanes)
    total = np.zeros(lanes, dtype=data.dtype)
    compensation = np.zeros(lanes, dtype=data.dtype)
    for row in block:
        corrected = row - compensation
        new_total = total + corrected
        compensation = (new_total - total) - corrected
        total = new_total

    return kahan_sum(
        data[rows * lanes :].tolist(),
        kahan_sum(total.tolist()),
        kahan_sum(compensation.tolist()),
    )


def compensated_sum(values: ArrayLike) -> float:
    """Sum used by the table builder to normalize weights."""
    return kahan_sum_lanes(values, DEFAULT_LANES)
