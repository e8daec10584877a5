"""
Bond Cash-Flow Schedule Engine

Modules:
- bonds: specification / period / summary objects + category enums
- utils: per-method day-count tables + payment calendar
- rates: nominal/effective, annual/period rate conversion
- costs: issuance-cost split between emitter and bondholder
- amortization: German (constant amortization) and French (annuity) strategies, grace periods
- cashflows: emitter, emitter-with-shield and bondholder flow series
- risk: present value, utility, duration, convexity at the opportunity cost
- yields: IRR search + TCEA / TREA annualization
- engine: `calculate(spec)` entry point
- records: stored bond rows -> BondSpecification
- scenarios: opportunity-cost shift runner

Presentation and persistence layers should import from this package.
"""
from .bonds import (
    Actor,
    AmortizationMethod,
    BondSpecification,
    CalculationSummary,
    Frequency,
    GracePeriodEntry,
    GraceType,
    InterestRateType,
    Period,
    PremiumTiming,
    ScheduleResult,
)
from .config import DEFAULT_CONFIG, EngineConfig, TotalGracePolicy
from .engine import calculate
from .errors import BondEngineError, ConfigurationError, ConvergenceWarning, ScheduleError

__all__ = [
    "Actor",
    "AmortizationMethod",
    "BondSpecification",
    "CalculationSummary",
    "Frequency",
    "GracePeriodEntry",
    "GraceType",
    "InterestRateType",
    "Period",
    "PremiumTiming",
    "ScheduleResult",
    "DEFAULT_CONFIG",
    "EngineConfig",
    "TotalGracePolicy",
    "calculate",
    "BondEngineError",
    "ConfigurationError",
    "ConvergenceWarning",
    "ScheduleError",
]
