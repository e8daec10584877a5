from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR
from typing import Dict, List, Mapping

import pandas as pd

from .bonds import AmortizationMethod, Frequency
from .errors import ConfigurationError, ScheduleError


# Per-method day-count tables. The French variant keeps its own 120-day
# quarterly period for rates; the calendar is shared, see CALENDAR_MONTHS.
GERMAN_DAY_COUNT: Dict[Frequency, int] = {
    Frequency.DAILY: 1,
    Frequency.MONTHLY: 30,
    Frequency.BIMONTHLY: 60,
    Frequency.QUARTERLY: 90,
    Frequency.SEMI_ANNUAL: 180,
    Frequency.ANNUAL: 360,
}

FRENCH_DAY_COUNT: Dict[Frequency, int] = {
    **GERMAN_DAY_COUNT,
    Frequency.QUARTERLY: 120,
}

DAY_COUNT_TABLES: Dict[AmortizationMethod, Dict[Frequency, int]] = {
    AmortizationMethod.GERMAN: GERMAN_DAY_COUNT,
    AmortizationMethod.FRENCH: FRENCH_DAY_COUNT,
}

CALENDAR_MONTHS: Dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.BIMONTHLY: 2,
    Frequency.QUARTERLY: 3,
    Frequency.SEMI_ANNUAL: 6,
    Frequency.ANNUAL: 12,
}


def day_count_for(method: AmortizationMethod) -> Dict[Frequency, int]:
    return DAY_COUNT_TABLES[AmortizationMethod(method)]


def frequency_days(freq: Frequency, day_count: Mapping[Frequency, int] = GERMAN_DAY_COUNT) -> int:
    try:
        return day_count[Frequency(freq)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unsupported frequency: {freq!r}") from None


def periods_per_year(
    freq: Frequency,
    days_per_year: int = 360,
    day_count: Mapping[Frequency, int] = GERMAN_DAY_COUNT,
) -> Decimal:
    """Number of periods of `freq` in a `days_per_year` basis (non-integral for 365)."""
    return Decimal(days_per_year) / Decimal(frequency_days(freq, day_count))


def total_periods(
    tenor_years: Decimal,
    freq: Frequency,
    days_per_year: int = 360,
    day_count: Mapping[Frequency, int] = GERMAN_DAY_COUNT,
) -> int:
    """Whole periods in the tenor; a trailing fraction of a period is dropped."""
    n = (Decimal(tenor_years) * periods_per_year(freq, days_per_year, day_count)).to_integral_value(
        rounding=ROUND_FLOOR
    )
    if n < 1:
        raise ScheduleError(f"Tenor {tenor_years} years yields no complete {Frequency(freq).value} period.")
    return int(n)


def payment_dates(emission_date: pd.Timestamp, n_periods: int, freq: Frequency) -> List[pd.Timestamp]:
    """
    Payment calendar for periods 0..n_periods.

    Index 0 is the emission date. Daily schedules step calendar days; every other
    frequency steps 1/2/3/6/12 whole months whatever the method's day count, always
    offset from the emission date so month-end clipping never accumulates.
    """
    emission_date = pd.Timestamp(emission_date)
    if n_periods < 0:
        raise ScheduleError("n_periods must be non-negative")

    try:
        freq = Frequency(freq)
    except ValueError:
        raise ConfigurationError(f"Unsupported frequency: {freq!r}") from None
    if freq is Frequency.DAILY:
        return [emission_date + pd.Timedelta(days=i) for i in range(n_periods + 1)]

    months = CALENDAR_MONTHS[freq]
    return [emission_date + pd.DateOffset(months=i * months) for i in range(n_periods + 1)]
