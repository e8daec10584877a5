from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import brentq, newton

from .cashflows import FlowSeries
from .errors import ConvergenceWarning
from .rates import annualize_period_rate

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def _npv_functions(flows: np.ndarray) -> Tuple[Callable[[float], float], Callable[[float], float]]:
    t = np.arange(flows.size, dtype=float)

    def f(r: float) -> float:
        with np.errstate(all="ignore"):
            return float(np.sum(flows / (1.0 + r) ** t))

    def fprime(r: float) -> float:
        with np.errstate(all="ignore"):
            return float(np.sum(-t * flows / (1.0 + r) ** (t + 1.0)))

    return f, fprime


def _bracket(f: Callable[[float], float], max_steps: int) -> Optional[Tuple[float, float]]:
    """Widen [lo, hi] (lo towards -1, hi doubling) until the NPV changes sign."""
    lo, hi = -0.5, 1.0
    for _ in range(max_steps):
        f_lo, f_hi = f(lo), f(hi)
        if np.isfinite(f_lo) and np.isfinite(f_hi) and f_lo * f_hi < 0:
            return lo, hi
        if lo > -1.0 + 1e-6:
            lo = (lo - 1.0) / 2.0
        if hi < 1e6:
            hi *= 2.0
        if lo <= -1.0 + 1e-6 and hi >= 1e6:
            break
    return None


def irr(flows: Sequence, tolerance: float = 1e-7, max_iterations: int = 200) -> Optional[float]:
    """
    Period IRR of `flows` (index = period), or None when no root is found.

    Newton from 1% first, then Brent on a widened bracket. A root is accepted
    only if |NPV| <= tolerance * max(1, sum|flow|).
    """
    cf = np.asarray([float(x) for x in flows], dtype=float)
    if cf.size < 2:
        return None

    signs = np.sign(cf[cf != 0.0])
    if signs.size == 0 or np.all(signs == signs[0]):
        return None

    f, fprime = _npv_functions(cf)
    scale = max(1.0, float(np.abs(cf).sum()))

    def accept(r) -> bool:
        return r is not None and np.isfinite(r) and r > -1.0 and abs(f(r)) <= tolerance * scale

    try:
        r = float(newton(f, 0.01, fprime=fprime, tol=tolerance * 1e-3, maxiter=max_iterations))
        if accept(r):
            return r
    except (RuntimeError, OverflowError, ZeroDivisionError):
        pass

    bounds = _bracket(f, max_iterations)
    if bounds is None:
        return None
    try:
        r = float(brentq(f, bounds[0], bounds[1], xtol=tolerance * 1e-3, maxiter=max_iterations))
    except (RuntimeError, ValueError):
        return None
    return r if accept(r) else None


@dataclass(frozen=True)
class YieldResult:
    emitter_tcea: Decimal
    emitter_tcea_with_shield: Decimal
    bondholder_trea: Decimal
    degraded_series: Tuple[str, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_series)


def solve_yields(
    flows: FlowSeries,
    periods_per_year: Decimal,
    effective_annual_rate: Decimal,
    income_tax: Decimal,
    tolerance: float = 1e-7,
    max_iterations: int = 200,
) -> YieldResult:
    """
    TCEA, TCEA with shield and TREA as annual percentages.

    Each series is solved on its own. A series without an IRR falls back to the
    effective annual coupon rate (net of tax for the shielded series) and is
    reported in `degraded_series`.
    """
    fallback = Decimal(effective_annual_rate) * HUNDRED
    fallbacks = {
        "emitter": fallback,
        "emitter_with_shield": fallback * (1 - Decimal(income_tax) / HUNDRED),
        "bondholder": fallback,
    }
    series = {
        "emitter": flows.emitter,
        "emitter_with_shield": flows.emitter_with_shield,
        "bondholder": flows.bondholder,
    }

    out = {}
    degraded = []
    for name, values in series.items():
        r = irr(values, tolerance=tolerance, max_iterations=max_iterations)
        if r is None:
            degraded.append(name)
            logger.warning("IRR did not converge for %s flows; using closed-form approximation", name)
            warnings.warn(
                f"IRR did not converge for {name} flows; annual rate approximated from the coupon rate.",
                ConvergenceWarning,
                stacklevel=2,
            )
            out[name] = fallbacks[name]
        else:
            out[name] = annualize_period_rate(Decimal(str(r)), periods_per_year) * HUNDRED

    return YieldResult(
        emitter_tcea=out["emitter"],
        emitter_tcea_with_shield=out["emitter_with_shield"],
        bondholder_trea=out["bondholder"],
        degraded_series=tuple(degraded),
    )
