from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Optional

import pandas as pd

from .bonds import BondSpecification
from .config import EngineConfig
from .engine import calculate


def cok_shift_bp(bp: float) -> Decimal:
    """Basis-point shift expressed in the percentage units of `BondSpecification.cok`."""
    return Decimal(str(bp)) / 100


def run_cok_scenarios(
    spec: BondSpecification,
    shifts_bp: Iterable[float] = (-50, -25, 25, 50),
    config: Optional[EngineConfig] = None,
) -> pd.DataFrame:
    """
    Re-price one bond under parallel shifts of its opportunity cost.

    Returns one row per scenario (base included) with actual price, utility,
    duration, modified duration, convexity and the price change vs base.
    """
    base = calculate(spec, config).summary

    rows = []
    for bp in [0, *shifts_bp]:
        if bp == 0:
            s = base
        else:
            s = calculate(replace(spec, cok=spec.cok + cok_shift_bp(bp)), config).summary
        rows.append(
            {
                "scenario": "BASE" if bp == 0 else f"COK_{bp:+g}bp",
                "cok_shift_bp": bp,
                "period_cok": s.period_cok,
                "actual_price": s.actual_price,
                "utility": s.utility,
                "duration": s.duration,
                "modified_duration": s.modified_duration,
                "convexity": s.convexity,
                "price_change": s.actual_price - base.actual_price,
            }
        )

    out = pd.DataFrame(rows).drop_duplicates(subset="cok_shift_bp")
    return out.sort_values("cok_shift_bp").reset_index(drop=True)
