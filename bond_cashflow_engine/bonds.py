from __future__ import annotations

from dataclasses import dataclass, field, fields
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional, Tuple, Type, TypeVar

import pandas as pd

from .errors import ConfigurationError, ScheduleError


class InterestRateType(str, Enum):
    NOMINAL = "nominal"
    EFFECTIVE = "effective"


class Frequency(str, Enum):
    """Payment or compounding frequency."""
    DAILY = "daily"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ANNUAL = "annual"


class AmortizationMethod(str, Enum):
    GERMAN = "german"   # constant amortization
    FRENCH = "french"   # constant installment


class GraceType(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    TOTAL = "total"


class Actor(str, Enum):
    EMITTER = "emitter"
    BONDHOLDER = "bondholder"
    BOTH = "both"


class PremiumTiming(str, Enum):
    BEGINNING = "beginning"
    END = "end"


E = TypeVar("E", bound=Enum)

_ALIASES = {"semi-annual": "semi_annual", "semiannual": "semi_annual"}


def coerce_enum(enum_cls: Type[E], value: Any, name: str) -> E:
    """Validate a loosely-typed category at the boundary."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return enum_cls(key)
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in enum_cls)
    raise ConfigurationError(f"{name}: invalid value {value!r} (expected one of: {allowed})")


def to_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ConfigurationError(f"{name}: expected a number, got {value!r}")
    try:
        # str() keeps 7.5 as Decimal("7.5") instead of its binary expansion
        out = Decimal(value) if isinstance(value, (int, str)) else Decimal(str(value))
    except (ArithmeticError, TypeError, ValueError):
        raise ConfigurationError(f"{name}: expected a number, got {value!r}") from None
    if not out.is_finite():
        raise ConfigurationError(f"{name}: must be finite, got {value!r}")
    return out


@dataclass(frozen=True)
class GracePeriodEntry:
    """
    Grace exception for one period (1-based).

    `duration` is informational only: every entry covers exactly one period.
    """
    period: int
    type: GraceType = GraceType.NONE
    duration: Optional[int] = None

    def __post_init__(self):
        try:
            period = int(self.period)
        except (TypeError, ValueError):
            period = None
        if isinstance(self.period, bool) or period is None or period != self.period:
            raise ScheduleError(f"grace period index must be an integer, got {self.period!r}")
        object.__setattr__(self, "period", period)
        object.__setattr__(self, "type", coerce_enum(GraceType, self.type, "grace type"))
        if self.period < 1:
            raise ScheduleError(f"grace period index must be >= 1, got {self.period}")


_PERCENT_FIELDS = ("premium", "structuring", "placement", "flotation", "settlement", "cok", "income_tax")


@dataclass(frozen=True)
class BondSpecification:
    """
    Fully-validated input for one schedule calculation.

    Rates and costs are percentages (7.5 means 7.5%). String categories are
    accepted and coerced to their enums here, so the engine never re-validates them.
    """
    commercial_value: Decimal
    interest_rate: Decimal
    interest_rate_type: InterestRateType
    payment_frequency: Frequency
    tenor_years: Decimal
    emission_date: pd.Timestamp
    amortization_method: AmortizationMethod = AmortizationMethod.GERMAN
    compounding_frequency: Optional[Frequency] = None
    days_per_year: int = 360
    nominal_value: Optional[Decimal] = None
    currency: str = "USD"
    bond_name: str = "Bond"

    premium: Decimal = Decimal(0)
    structuring: Decimal = Decimal(0)
    placement: Decimal = Decimal(0)
    flotation: Decimal = Decimal(0)
    settlement: Decimal = Decimal(0)
    premium_actor: Actor = Actor.BOTH
    structuring_actor: Actor = Actor.EMITTER
    placement_actor: Actor = Actor.EMITTER
    flotation_actor: Actor = Actor.BOTH
    settlement_actor: Actor = Actor.BOTH
    premium_timing: PremiumTiming = PremiumTiming.END

    cok: Decimal = Decimal(0)
    income_tax: Decimal = Decimal(0)
    grace_periods: Tuple[GracePeriodEntry, ...] = field(default_factory=tuple)

    def __post_init__(self):
        def put(name: str, value: Any) -> None:
            object.__setattr__(self, name, value)

        put("commercial_value", to_decimal(self.commercial_value, "commercial_value"))
        put("interest_rate", to_decimal(self.interest_rate, "interest_rate"))
        put("tenor_years", to_decimal(self.tenor_years, "tenor_years"))
        put("nominal_value", self.commercial_value if self.nominal_value is None
            else to_decimal(self.nominal_value, "nominal_value"))
        for name in _PERCENT_FIELDS:
            put(name, to_decimal(getattr(self, name), name))

        put("interest_rate_type", coerce_enum(InterestRateType, self.interest_rate_type, "interest_rate_type"))
        put("payment_frequency", coerce_enum(Frequency, self.payment_frequency, "payment_frequency"))
        put("amortization_method", coerce_enum(AmortizationMethod, self.amortization_method, "amortization_method"))
        if self.compounding_frequency is not None:
            put("compounding_frequency", coerce_enum(Frequency, self.compounding_frequency, "compounding_frequency"))
        put("premium_timing", coerce_enum(PremiumTiming, self.premium_timing, "premium_timing"))
        for name in ("premium_actor", "structuring_actor", "placement_actor", "flotation_actor", "settlement_actor"):
            put(name, coerce_enum(Actor, getattr(self, name), name))

        try:
            put("emission_date", pd.Timestamp(self.emission_date))
        except (TypeError, ValueError):
            raise ConfigurationError(f"emission_date: invalid date {self.emission_date!r}") from None
        if pd.isna(self.emission_date):
            raise ConfigurationError("emission_date is required")

        if self.commercial_value <= 0:
            raise ConfigurationError("commercial_value must be positive")
        if self.tenor_years <= 0:
            raise ConfigurationError("tenor_years must be positive")
        try:
            dpy = int(self.days_per_year)
        except (TypeError, ValueError):
            dpy = None
        if isinstance(self.days_per_year, bool) or dpy is None or dpy != self.days_per_year or dpy <= 0:
            raise ConfigurationError(f"days_per_year must be a positive integer, got {self.days_per_year!r}")
        put("days_per_year", dpy)
        if self.interest_rate < 0:
            raise ConfigurationError("interest_rate cannot be negative")
        for name in _PERCENT_FIELDS:
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} cannot be negative")

        if self.interest_rate_type is InterestRateType.NOMINAL and self.compounding_frequency is None:
            raise ConfigurationError("compounding_frequency is required when interest_rate_type is nominal")

        entries = tuple(g if isinstance(g, GracePeriodEntry) else GracePeriodEntry(**g) for g in self.grace_periods)
        seen = set()
        for g in entries:
            if g.period in seen:
                raise ScheduleError(f"duplicate grace period entry for period {g.period}")
            seen.add(g.period)
        put("grace_periods", tuple(sorted(entries, key=lambda g: g.period)))


@dataclass(frozen=True)
class Period:
    """One schedule row. Amounts are magnitudes; only the three flows carry sign."""
    period: int
    date: pd.Timestamp
    grace: Optional[GraceType]
    balance: Decimal
    coupon: Decimal
    quota: Decimal
    amortization: Decimal
    premium: Decimal
    shield: Decimal
    emitter_flow: Decimal
    emitter_flow_with_shield: Decimal
    bondholder_flow: Decimal
    actualized_flow: Decimal
    fa_x_term: Decimal
    convexity_factor: Decimal


@dataclass(frozen=True)
class CalculationSummary:
    frequency_days: int
    compounding_days: Optional[int]
    days_per_year: int
    periods_per_year: Decimal
    total_periods: int
    effective_annual_rate: Decimal      # %
    effective_period_rate: Decimal      # %
    period_cok: Decimal                 # %
    emitter_initial_costs: Decimal
    bondholder_initial_costs: Decimal
    actual_price: Decimal
    utility: Decimal
    duration: Decimal
    convexity: Decimal
    total: Decimal
    modified_duration: Decimal
    emitter_tcea: Decimal               # %
    emitter_tcea_with_shield: Decimal   # %
    bondholder_trea: Decimal            # %
    degraded: bool = False
    degraded_series: Tuple[str, ...] = ()


_CENT = Decimal("0.01")
_AMOUNT_COLUMNS = (
    "balance", "coupon", "quota", "amortization", "premium", "shield",
    "emitter_flow", "emitter_flow_with_shield", "bondholder_flow",
    "actualized_flow", "fa_x_term", "convexity_factor",
)


@dataclass(frozen=True)
class ScheduleResult:
    periods: Tuple[Period, ...]
    summary: CalculationSummary

    def to_frame(self, rounded: bool = False) -> pd.DataFrame:
        """Schedule as a DataFrame, one row per period 0..N (Decimal cells)."""
        rows = []
        for p in self.periods:
            row = {f.name: getattr(p, f.name) for f in fields(p)}
            row["grace"] = p.grace.value if p.grace is not None else ""
            if rounded:
                for c in _AMOUNT_COLUMNS:
                    row[c] = row[c].quantize(_CENT, rounding=ROUND_HALF_UP)
            rows.append(row)
        return pd.DataFrame(rows, columns=[f.name for f in fields(Period)])

    def summary_frame(self) -> pd.DataFrame:
        s = self.summary
        return pd.DataFrame(
            {"metric": [f.name for f in fields(s)], "value": [getattr(s, f.name) for f in fields(s)]}
        )
