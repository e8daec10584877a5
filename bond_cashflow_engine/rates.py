from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional

from .bonds import Frequency, InterestRateType
from .errors import ConfigurationError
from .utils import GERMAN_DAY_COUNT, frequency_days

ONE = Decimal(1)


def nominal_to_effective_annual(nominal: Decimal, compounding_per_year: Decimal) -> Decimal:
    """(1 + j/m)^m - 1, with j and the result as decimal fractions."""
    m = Decimal(compounding_per_year)
    return (ONE + Decimal(nominal) / m) ** m - ONE


def effective_annual_to_period(effective_annual: Decimal, period_days: int, days_per_year: int = 360) -> Decimal:
    """(1 + r)^(period_days / days_per_year) - 1."""
    return (ONE + Decimal(effective_annual)) ** (Decimal(period_days) / Decimal(days_per_year)) - ONE


def annualize_period_rate(period_rate: Decimal, periods_per_year: Decimal) -> Decimal:
    return (ONE + Decimal(period_rate)) ** Decimal(periods_per_year) - ONE


def effective_annual_rate(
    rate: Decimal,
    rate_type: InterestRateType,
    compounding_frequency: Optional[Frequency] = None,
    days_per_year: int = 360,
    day_count: Mapping[Frequency, int] = GERMAN_DAY_COUNT,
) -> Decimal:
    rate_type = InterestRateType(rate_type)
    if rate_type is InterestRateType.EFFECTIVE:
        return Decimal(rate)

    if compounding_frequency is None:
        raise ConfigurationError("Compounding frequency is required for nominal rates.")
    m = Decimal(days_per_year) / Decimal(frequency_days(compounding_frequency, day_count))
    return nominal_to_effective_annual(rate, m)


def effective_period_rate(
    rate: Decimal,
    rate_type: InterestRateType,
    compounding_frequency: Optional[Frequency],
    payment_frequency: Frequency,
    days_per_year: int = 360,
    day_count: Mapping[Frequency, int] = GERMAN_DAY_COUNT,
) -> Decimal:
    """
    Effective rate per payment period.

    `rate` is a decimal fraction. Effective rates are taken as effective annual;
    nominal rates are first compounded to effective annual with
    m = days_per_year / compounding_days. `day_count` must be the table of the
    amortization method in use.
    """
    eff = effective_annual_rate(rate, rate_type, compounding_frequency, days_per_year, day_count)
    return effective_annual_to_period(eff, frequency_days(payment_frequency, day_count), days_per_year)
