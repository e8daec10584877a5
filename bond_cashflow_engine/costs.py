from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from .bonds import Actor, BondSpecification, coerce_enum


@dataclass(frozen=True)
class InitialCosts:
    emitter: Decimal
    bondholder: Decimal


def allocate_initial_costs(
    commercial_value: Decimal,
    costs: Sequence[Decimal],
    actors: Sequence[Actor],
) -> InitialCosts:
    """
    Split issuance costs (percentages of commercial value) between the two sides.

    An actor of BOTH charges the full amount to each side; it is not split.
    """
    if len(costs) != len(actors):
        raise ValueError("costs and actors must have the same length")

    commercial_value = Decimal(commercial_value)
    emitter = Decimal(0)
    bondholder = Decimal(0)
    for pct, actor in zip(costs, actors):
        actor = coerce_enum(Actor, actor, "cost actor")
        amount = commercial_value * Decimal(pct or 0) / 100
        if actor in (Actor.EMITTER, Actor.BOTH):
            emitter += amount
        if actor in (Actor.BONDHOLDER, Actor.BOTH):
            bondholder += amount
    return InitialCosts(emitter=emitter, bondholder=bondholder)


def initial_costs_for(spec: BondSpecification) -> InitialCosts:
    return allocate_initial_costs(
        spec.commercial_value,
        [spec.structuring, spec.placement, spec.flotation, spec.settlement],
        [spec.structuring_actor, spec.placement_actor, spec.flotation_actor, spec.settlement_actor],
    )
