from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List

from .bonds import AmortizationMethod, GracePeriodEntry, GraceType, PremiumTiming
from .config import TotalGracePolicy
from .errors import ScheduleError

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
ONE = Decimal(1)


class PeriodKind(str, Enum):
    STANDARD = "standard"
    PARTIAL_GRACE = "partial_grace"
    TOTAL_GRACE = "total_grace"


_KIND_BY_GRACE = {
    GraceType.NONE: PeriodKind.STANDARD,
    GraceType.PARTIAL: PeriodKind.PARTIAL_GRACE,
    GraceType.TOTAL: PeriodKind.TOTAL_GRACE,
}


def build_grace_map(entries: Iterable[GracePeriodEntry], n_periods: int) -> Dict[int, PeriodKind]:
    """Period index (1..n_periods) -> kind; periods without an entry are STANDARD."""
    kinds = {i: PeriodKind.STANDARD for i in range(1, n_periods + 1)}
    seen = set()
    for g in entries:
        if g.period in seen:
            raise ScheduleError(f"duplicate grace period entry for period {g.period}")
        seen.add(g.period)
        if not (1 <= g.period <= n_periods):
            raise ScheduleError(f"grace period {g.period} outside 1..{n_periods}")
        kinds[g.period] = _KIND_BY_GRACE[GraceType(g.type)]
    return kinds


@dataclass(frozen=True)
class PeriodState:
    period: int
    balance: Decimal
    coupon: Decimal


@dataclass(frozen=True)
class Installment:
    amortization: Decimal
    quota: Decimal


class AmortizationStrategy(ABC):
    """Installment rule for STANDARD periods; grace periods are handled by `amortize`."""

    def __init__(self, principal: Decimal, rate: Decimal, n_standard: int):
        if n_standard <= 0:
            raise ScheduleError("No non-grace periods left to amortize the principal.")
        self.principal = Decimal(principal)
        self.rate = Decimal(rate)
        self.n_standard = n_standard

    @abstractmethod
    def compute_quota(self, state: PeriodState) -> Installment:
        ...

    def rebased(self, balance: Decimal, remaining: int) -> "AmortizationStrategy":
        """Same rule re-solved for `balance` over the `remaining` standard periods."""
        return type(self)(balance, self.rate, remaining)


class GermanStrategy(AmortizationStrategy):
    """Constant amortization, interest on the outstanding balance."""

    def __init__(self, principal: Decimal, rate: Decimal, n_standard: int):
        super().__init__(principal, rate, n_standard)
        self.constant_amortization = self.principal / n_standard

    def compute_quota(self, state: PeriodState) -> Installment:
        amort = self.constant_amortization
        return Installment(amortization=amort, quota=state.coupon + amort)


def annuity_payment(principal: Decimal, rate: Decimal, n: int) -> Decimal:
    """Constant installment repaying `principal` over `n` periods at `rate`."""
    if rate == 0:
        return principal / n
    growth = (ONE + rate) ** n
    return principal * rate * growth / (growth - ONE)


class FrenchStrategy(AmortizationStrategy):
    """Constant installment (annuity); amortization is the installment net of interest."""

    def __init__(self, principal: Decimal, rate: Decimal, n_standard: int):
        super().__init__(principal, rate, n_standard)
        self.constant_quota = annuity_payment(self.principal, self.rate, n_standard)

    def compute_quota(self, state: PeriodState) -> Installment:
        quota = self.constant_quota
        return Installment(amortization=quota - state.coupon, quota=quota)


STRATEGIES = {
    AmortizationMethod.GERMAN: GermanStrategy,
    AmortizationMethod.FRENCH: FrenchStrategy,
}


def strategy_for(method: AmortizationMethod, principal: Decimal, rate: Decimal, n_standard: int) -> AmortizationStrategy:
    return STRATEGIES[AmortizationMethod(method)](principal, rate, n_standard)


@dataclass(frozen=True)
class AmortizationRow:
    period: int
    kind: PeriodKind
    balance: Decimal        # outstanding entering the period
    coupon: Decimal
    amortization: Decimal
    quota: Decimal
    premium: Decimal
    shield: Decimal


def premium_amount(
    premium_rate: Decimal,
    timing: PremiumTiming,
    commercial_value: Decimal,
    final_balance: Decimal,
) -> Decimal:
    base = commercial_value if PremiumTiming(timing) is PremiumTiming.BEGINNING else final_balance
    return base * Decimal(premium_rate) / 100


def amortize(
    method: AmortizationMethod,
    principal: Decimal,
    rate: Decimal,
    grace_map: Dict[int, PeriodKind],
    premium_rate: Decimal = ZERO,
    premium_timing: PremiumTiming = PremiumTiming.END,
    income_tax: Decimal = ZERO,
    total_grace_policy: TotalGracePolicy = TotalGracePolicy.WAIVE,
) -> List[AmortizationRow]:
    """
    Walk periods 1..N producing coupon, amortization and quota per period.

    - STANDARD: the method strategy decides; the balance falls by the amortization.
    - PARTIAL_GRACE: interest only (quota = coupon), balance unchanged.
    - TOTAL_GRACE: nothing paid. The coupon still accrues and is reported; under
      CAPITALIZE it is added to the balance and the strategy is re-solved.

    Premium is charged once, at the final period. Shield is coupon x tax every period.
    """
    n_periods = len(grace_map)
    if n_periods < 1:
        raise ScheduleError("Schedule needs at least one period.")

    principal = Decimal(principal)
    rate = Decimal(rate)
    tax = Decimal(income_tax) / 100
    policy = TotalGracePolicy(total_grace_policy)

    remaining = sum(1 for k in grace_map.values() if k is PeriodKind.STANDARD)
    if remaining <= 0 and principal != 0:
        raise ScheduleError(f"All {n_periods} periods are grace periods; the principal is never amortized.")

    strategy = strategy_for(method, principal, rate, remaining)
    rebase_pending = False

    rows: List[AmortizationRow] = []
    balance = principal
    for i in range(1, n_periods + 1):
        kind = grace_map[i]
        coupon = balance * rate
        entering = balance

        if kind is PeriodKind.TOTAL_GRACE:
            amort, quota = ZERO, ZERO
            if policy is TotalGracePolicy.CAPITALIZE and coupon != 0:
                balance = balance + coupon
                rebase_pending = True
        elif kind is PeriodKind.PARTIAL_GRACE:
            amort, quota = ZERO, coupon
        else:
            if rebase_pending:
                strategy = strategy.rebased(balance, remaining)
                rebase_pending = False
                logger.debug("period %d: strategy re-solved on capitalized balance %s", i, balance)
            inst = strategy.compute_quota(PeriodState(period=i, balance=balance, coupon=coupon))
            amort, quota = inst.amortization, inst.quota
            balance = balance - amort
            remaining -= 1

        premium = ZERO
        if i == n_periods:
            premium = premium_amount(premium_rate, premium_timing, principal, entering)

        rows.append(
            AmortizationRow(
                period=i,
                kind=kind,
                balance=entering,
                coupon=coupon,
                amortization=amort,
                quota=quota,
                premium=premium,
                shield=coupon * tax,
            )
        )

    return rows
