"""Package initialization for vose-alias.

Constant-time sampling from a fixed weighted discrete distribution, using
Vose's Alias Method for the O(n) table construction.
"""

from vose_alias.builder import build, build_from_weights
from vose_alias.config import AliasConfig
from vose_alias.conformance import (
    ChiSquaredResult,
    chi_squared_test,
    implied_distribution,
)
from vose_alias.dtypes import IndexType
from vose_alias.errors import (
    AliasError,
    AllocationFailureError,
    BuildError,
    EmptyInputError,
    IndexRangeExceededError,
    InvalidWeightsError,
    NegativeWeightError,
    NoPositiveWeightError,
    NonFiniteWeightError,
    WeightValidationError,
)
from vose_alias.sampler import NumpySource, UniformSource, draw, sample_many
from vose_alias.storage import FlatStorage, PackedStorage, TableStorage, block_capacity
from vose_alias.summation import compensated_sum, kahan_sum, kahan_sum_lanes
from vose_alias.table import AliasTable
from vose_alias.validation import ValidatedWeights, assume_valid, validate

__version__ = "0.1.0"
__all__ = [
    "AliasConfig",
    "AliasError",
    "AliasTable",
    "AllocationFailureError",
    "BuildError",
    "ChiSquaredResult",
    "EmptyInputError",
    "FlatStorage",
    "IndexRangeExceededError",
    "IndexType",
    "InvalidWeightsError",
    "NegativeWeightError",
    "NoPositiveWeightError",
    "NonFiniteWeightError",
    "NumpySource",
    "PackedStorage",
    "TableStorage",
    "UniformSource",
    "ValidatedWeights",
    "WeightValidationError",
    "assume_valid",
    "block_capacity",
    "build",
    "build_from_weights",
    "chi_squared_test",
    "compensated_sum",
    "draw",
    "implied_distribution",
    "kahan_sum",
    "kahan_sum_lanes",
    "sample_many",
    "validate",
]
