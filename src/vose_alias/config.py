"""Build-time options for alias tables."""

from dataclasses import dataclass, fields
from typing import Any


@dataclass(frozen=True)
class AliasConfig:
    """Flags that let the builder skip work the caller has already done.

    Attributes:
        can_mutate: The builder may scale the caller's weight array in place
            instead of copying it first.
        pre_normalized: Weights already sum to 1, so the summation step is
            skipped.
        pre_scaled: Weights already sum to ``len(weights)``, so summation and
            scaling are both skipped. Takes precedence over ``pre_normalized``.
    """

    can_mutate: bool = False
    pre_normalized: bool = False
    pre_scaled: bool = False

    @classmethod
    def from_options(cls, **options: Any) -> "AliasConfig":
        """Build a config from keyword options, rejecting unknown names."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise TypeError(
                f"unknown alias table option(s): {', '.join(unknown)}; "
                f"expected some of {', '.join(sorted(known))}"
            )
        for name, value in options.items():
            if not isinstance(value, bool):
                raise TypeError(f"option {name!r} must be a bool, got {value!r}")
        return cls(**options)

    @property
    def needs_sum(self) -> bool:
        return not (self.pre_scaled or self.pre_normalized)
