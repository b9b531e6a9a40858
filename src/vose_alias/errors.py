"""Exception types raised while validating weights and building tables.

Validation failures subclass ``ValueError`` so callers that only care about
"bad weights" can catch that alone.
"""


class AliasError(Exception):
    """Base class for every error raised by vose-alias."""


# =============================================================================
# Validation
# =============================================================================


class WeightValidationError(AliasError, ValueError):
    """The weight sequence does not satisfy the builder's preconditions."""


class EmptyInputError(WeightValidationError):
    def __init__(self) -> None:
        super().__init__("weights must contain at least one entry")


class NegativeWeightError(WeightValidationError):
    def __init__(self, index: int, value: float) -> None:
        self.index = index
        self.value = value
        super().__init__(f"weight at index {index} is negative: {value!r}")


class NonFiniteWeightError(WeightValidationError):
    def __init__(self, index: int, value: float) -> None:
        self.index = index
        self.value = value
        super().__init__(f"weight at index {index} is not finite: {value!r}")


class NoPositiveWeightError(WeightValidationError):
    def __init__(self) -> None:
        super().__init__("at least one weight must be positive")


class IndexRangeExceededError(WeightValidationError):
    def __init__(self, size: int, max_value: int) -> None:
        self.size = size
        self.max_value = max_value
        super().__init__(
            f"{size} weights need indices up to {size - 1}, "
            f"but the index type only holds up to {max_value}"
        )


# =============================================================================
# Construction
# =============================================================================


class BuildError(AliasError):
    """Construction of an alias table failed."""


class InvalidWeightsError(BuildError, ValueError):
    def __init__(self, total: float) -> None:
        self.total = total
        super().__init__(f"weights cannot be normalized (total is {total!r})")


class AllocationFailureError(BuildError, MemoryError):
    """Backing storage for the table could not be allocated."""
