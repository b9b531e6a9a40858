"""Checking that a table samples the distribution it was built for."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike
from scipy import stats

from vose_alias.sampler import UniformSource, sample_many

if TYPE_CHECKING:
    from vose_alias.table import AliasTable


@dataclass(frozen=True)
class ChiSquaredResult:
    chi_squared: float
    degrees_of_freedom: int
    p_value: float
    samples: int

    def passes(self, alpha: float = 0.05) -> bool:
        """True when the sample is consistent with the expected distribution."""
        return self.p_value >= alpha


def implied_distribution(table: "AliasTable") -> np.ndarray:
    """Per-outcome probability encoded by the table.

    Bucket ``i`` is chosen with chance ``1/n``; it keeps ``i`` with
    ``probability[i]`` and otherwise hands the rest to ``alias[i]``.
    """
    probabilities = table.probabilities().astype(np.float64)
    aliases = table.aliases().astype(np.intp)
    n = probabilities.shape[0]
    mass = probabilities / n
    np.add.at(mass, aliases, (1.0 - probabilities) / n)
    return mass


def chi_squared_test(
    table: "AliasTable",
    source: UniformSource,
    samples: int,
    expected: ArrayLike | None = None,
) -> ChiSquaredResult:
    """Pearson's chi-squared test of ``samples`` fresh draws from ``table``.

    ``expected`` defaults to :func:`implied_distribution`. Outcomes with zero
    expected mass are left out of the statistic; drawing one at all gives a
    p-value of 0.
    """
    if samples < 1:
        raise ValueError(f"samples must be at least 1, got {samples}")

    n = len(table)
    if expected is None:
        expected_mass = implied_distribution(table)
    else:
        expected_mass = np.asarray(expected, dtype=np.float64)
        if expected_mass.shape != (n,):
            raise ValueError(
                f"expected must have shape ({n},), got {expected_mass.shape}"
            )
        expected_mass = expected_mass / expected_mass.sum()

    counts = np.bincount(sample_many(table, source, samples), minlength=n)
    support = expected_mass > 0
    degrees_of_freedom = max(int(support.sum()) - 1, 0)

    if counts[~support].any():
        return ChiSquaredResult(float("inf"), degrees_of_freedom, 0.0, samples)

    expected_counts = expected_mass[support] * samples
    chi_squared = float(
        (((counts[support] - expected_counts) ** 2) / expected_counts).sum()
    )
    if degrees_of_freedom == 0:
        p_value = 1.0
    else:
        p_value = float(stats.chi2.sf(chi_squared, degrees_of_freedom))
    return ChiSquaredResult(chi_squared, degrees_of_freedom, p_value, samples)
