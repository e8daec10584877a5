from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, ROUND_HALF_UP
from enum import Enum

from .errors import ConfigurationError


class TotalGracePolicy(str, Enum):
    """
    What happens to interest accrued during a TOTAL grace period.

    - WAIVE: the coupon is reported (and shielded) but neither paid nor added to the balance.
    - CAPITALIZE: the coupon is added to the outstanding balance entering the next period.
    """
    WAIVE = "waive"
    CAPITALIZE = "capitalize"


@dataclass(frozen=True)
class EngineConfig:
    """Per-call arithmetic and solver settings."""
    precision: int = 28
    rounding: str = ROUND_HALF_UP
    irr_tolerance: float = 1e-7
    irr_max_iterations: int = 200
    total_grace_policy: TotalGracePolicy = TotalGracePolicy.WAIVE

    def __post_init__(self):
        if self.precision < 12:
            raise ConfigurationError("precision must be at least 12 significant digits")
        if self.irr_max_iterations <= 0:
            raise ConfigurationError("irr_max_iterations must be positive")
        if self.irr_tolerance <= 0:
            raise ConfigurationError("irr_tolerance must be positive")
        try:
            policy = TotalGracePolicy(self.total_grace_policy)
        except ValueError:
            raise ConfigurationError(f"unknown total_grace_policy {self.total_grace_policy!r}") from None
        object.__setattr__(self, "total_grace_policy", policy)

    def decimal_context(self) -> Context:
        return Context(prec=self.precision, rounding=self.rounding)


DEFAULT_CONFIG = EngineConfig()
