from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence, Tuple

from .errors import ScheduleError

ONE = Decimal(1)


@dataclass(frozen=True)
class DiscountedMetrics:
    actualized: Tuple[Decimal, ...]        # periods 0..N, period 0 is zero
    fa_x_term: Tuple[Decimal, ...]
    convexity_factor: Tuple[Decimal, ...]
    actual_price: Decimal
    utility: Decimal
    duration: Decimal
    convexity: Decimal
    modified_duration: Decimal


def discount_flows(
    bondholder_flows: Sequence[Decimal],
    period_cok: Decimal,
    period_days: int,
    days_per_year: int = 360,
) -> DiscountedMetrics:
    """
    Price and sensitivities of the bondholder series at the period COK.

    For i >= 1:
      actualized_i  = flow_i / (1 + cok)^i
      fa_x_term_i   = actualized_i * i * period_days / days_per_year
      convexity_i   = actualized_i * i * (i + 1)

    Aggregates are over periods 1..N; period 0 only enters the utility.
    Duration is in years; convexity is annualized by (days_per_year / period_days)^2.
    """
    if len(bondholder_flows) < 2:
        raise ScheduleError("Need period 0 and at least one payment period.")

    cok = Decimal(period_cok)
    base = ONE + cok
    year_fraction = Decimal(period_days) / Decimal(days_per_year)

    actualized = [Decimal(0)]
    fa = [Decimal(0)]
    cx = [Decimal(0)]
    for i, flow in enumerate(bondholder_flows[1:], start=1):
        af = Decimal(flow) / base ** i
        actualized.append(af)
        fa.append(af * i * year_fraction)
        cx.append(af * i * (i + 1))

    actual_price = sum(actualized[1:], Decimal(0))
    total_fa = sum(fa[1:], Decimal(0))
    total_cx = sum(cx[1:], Decimal(0))

    if actual_price == 0:
        raise ScheduleError("Bondholder flows discount to zero; duration is undefined.")

    duration = total_fa / actual_price
    periods_per_year = Decimal(days_per_year) / Decimal(period_days)
    convexity = total_cx / (base ** 2 * actual_price * periods_per_year ** 2)

    return DiscountedMetrics(
        actualized=tuple(actualized),
        fa_x_term=tuple(fa),
        convexity_factor=tuple(cx),
        actual_price=actual_price,
        utility=Decimal(bondholder_flows[0]) + actual_price,
        duration=duration,
        convexity=convexity,
        modified_duration=duration / base,
    )
