from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence, Tuple

from .amortization import AmortizationRow
from .bonds import Actor
from .costs import InitialCosts


@dataclass(frozen=True)
class FlowSeries:
    """
    Signed flow vectors indexed 0..N.

    Emitter flows are costs (negative after period 0), bondholder flows are
    proceeds (positive after period 0), so each series feeds an IRR solve as is.
    """
    emitter: Tuple[Decimal, ...]
    emitter_with_shield: Tuple[Decimal, ...]
    bondholder: Tuple[Decimal, ...]

    def __len__(self) -> int:
        return len(self.bondholder)


def assemble_flows(
    commercial_value: Decimal,
    costs: InitialCosts,
    rows: Sequence[AmortizationRow],
    premium_actor: Actor = Actor.BOTH,
) -> FlowSeries:
    commercial_value = Decimal(commercial_value)
    premium_actor = Actor(premium_actor)
    emitter_pays_premium = premium_actor in (Actor.EMITTER, Actor.BOTH)
    holder_gets_premium = premium_actor in (Actor.BONDHOLDER, Actor.BOTH)

    # period 0: proceeds net of emitter costs / face plus bondholder costs
    emitter = [commercial_value - costs.emitter]
    with_shield = [commercial_value - costs.emitter]
    holder = [-(commercial_value + costs.bondholder)]

    for r in rows:
        out = r.quota + (r.premium if emitter_pays_premium else 0)
        emitter.append(-out)
        with_shield.append(-out + r.shield)
        holder.append(r.quota + (r.premium if holder_gets_premium else 0))

    return FlowSeries(tuple(emitter), tuple(with_shield), tuple(holder))
