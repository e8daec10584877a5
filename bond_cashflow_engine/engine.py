from __future__ import annotations

import logging
from decimal import Decimal, localcontext
from typing import List, Optional

from .amortization import PeriodKind, amortize, build_grace_map
from .bonds import (
    BondSpecification,
    CalculationSummary,
    GraceType,
    InterestRateType,
    Period,
    ScheduleResult,
)
from .cashflows import assemble_flows
from .config import DEFAULT_CONFIG, EngineConfig
from .costs import initial_costs_for
from .rates import effective_annual_rate, effective_annual_to_period, effective_period_rate
from .risk import discount_flows
from .utils import day_count_for, frequency_days, payment_dates, periods_per_year, total_periods
from .yields import solve_yields

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)

_GRACE_LABEL = {
    PeriodKind.STANDARD: GraceType.NONE,
    PeriodKind.PARTIAL_GRACE: GraceType.PARTIAL,
    PeriodKind.TOTAL_GRACE: GraceType.TOTAL,
}


def calculate(spec: BondSpecification, config: Optional[EngineConfig] = None) -> ScheduleResult:
    """
    Full cash-flow schedule and summary for one bond.

    Arithmetic runs in a local Decimal context built from `config`, so calls with
    different precision can run side by side. Raises ConfigurationError or
    ScheduleError; never returns a partial schedule.
    """
    config = config or DEFAULT_CONFIG
    with localcontext(config.decimal_context()):
        return _calculate(spec, config)


def _calculate(spec: BondSpecification, config: EngineConfig) -> ScheduleResult:
    day_count = day_count_for(spec.amortization_method)
    dpy = spec.days_per_year

    freq_days = frequency_days(spec.payment_frequency, day_count)
    ppy = periods_per_year(spec.payment_frequency, dpy, day_count)
    n = total_periods(spec.tenor_years, spec.payment_frequency, dpy, day_count)

    compounding_days = None
    if spec.interest_rate_type is InterestRateType.NOMINAL:
        compounding_days = frequency_days(spec.compounding_frequency, day_count)

    rate = spec.interest_rate / HUNDRED
    tea = effective_annual_rate(rate, spec.interest_rate_type, spec.compounding_frequency, dpy, day_count)
    period_rate = effective_period_rate(
        rate, spec.interest_rate_type, spec.compounding_frequency, spec.payment_frequency, dpy, day_count
    )
    period_cok = effective_annual_to_period(spec.cok / HUNDRED, freq_days, dpy)

    logger.debug(
        "%s (%s): %d periods of %d days, period rate %s, period COK %s",
        spec.bond_name, spec.amortization_method.value, n, freq_days, period_rate, period_cok,
    )

    grace_map = build_grace_map(spec.grace_periods, n)
    rows = amortize(
        spec.amortization_method,
        spec.commercial_value,
        period_rate,
        grace_map,
        premium_rate=spec.premium,
        premium_timing=spec.premium_timing,
        income_tax=spec.income_tax,
        total_grace_policy=config.total_grace_policy,
    )

    costs = initial_costs_for(spec)
    flows = assemble_flows(spec.commercial_value, costs, rows, spec.premium_actor)
    metrics = discount_flows(flows.bondholder, period_cok, freq_days, dpy)
    yields = solve_yields(
        flows,
        ppy,
        tea,
        spec.income_tax,
        tolerance=config.irr_tolerance,
        max_iterations=config.irr_max_iterations,
    )

    dates = payment_dates(spec.emission_date, n, spec.payment_frequency)

    zero = Decimal(0)
    periods: List[Period] = [
        Period(
            period=0,
            date=dates[0],
            grace=None,
            balance=zero,
            coupon=zero,
            quota=zero,
            amortization=zero,
            premium=zero,
            shield=zero,
            emitter_flow=flows.emitter[0],
            emitter_flow_with_shield=flows.emitter_with_shield[0],
            bondholder_flow=flows.bondholder[0],
            actualized_flow=zero,
            fa_x_term=zero,
            convexity_factor=zero,
        )
    ]
    for r in rows:
        i = r.period
        periods.append(
            Period(
                period=i,
                date=dates[i],
                grace=_GRACE_LABEL[r.kind],
                balance=r.balance,
                coupon=r.coupon,
                quota=r.quota,
                amortization=r.amortization,
                premium=r.premium,
                shield=r.shield,
                emitter_flow=flows.emitter[i],
                emitter_flow_with_shield=flows.emitter_with_shield[i],
                bondholder_flow=flows.bondholder[i],
                actualized_flow=metrics.actualized[i],
                fa_x_term=metrics.fa_x_term[i],
                convexity_factor=metrics.convexity_factor[i],
            )
        )

    summary = CalculationSummary(
        frequency_days=freq_days,
        compounding_days=compounding_days,
        days_per_year=dpy,
        periods_per_year=ppy,
        total_periods=n,
        effective_annual_rate=tea * HUNDRED,
        effective_period_rate=period_rate * HUNDRED,
        period_cok=period_cok * HUNDRED,
        emitter_initial_costs=costs.emitter,
        bondholder_initial_costs=costs.bondholder,
        actual_price=metrics.actual_price,
        utility=metrics.utility,
        duration=metrics.duration,
        convexity=metrics.convexity,
        total=metrics.duration + metrics.convexity,
        modified_duration=metrics.modified_duration,
        emitter_tcea=yields.emitter_tcea,
        emitter_tcea_with_shield=yields.emitter_tcea_with_shield,
        bondholder_trea=yields.bondholder_trea,
        degraded=yields.degraded,
        degraded_series=yields.degraded_series,
    )

    logger.info(
        "%s: price %s, duration %s, TCEA %s%%, TREA %s%%%s",
        spec.bond_name,
        summary.actual_price,
        summary.duration,
        summary.emitter_tcea,
        summary.bondholder_trea,
        " (degraded)" if summary.degraded else "",
    )
    return ScheduleResult(periods=tuple(periods), summary=summary)
