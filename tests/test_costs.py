from decimal import Decimal

import pytest

from bond_cashflow_engine.bonds import Actor
from bond_cashflow_engine.costs import allocate_initial_costs, initial_costs_for
from bond_cashflow_engine.errors import ConfigurationError


def test_both_charges_each_side_in_full():
    costs = allocate_initial_costs(
        Decimal(1000),
        [Decimal("0.9"), Decimal("0.95"), Decimal("0.3"), Decimal("0.45")],
        [Actor.EMITTER, Actor.EMITTER, Actor.BOTH, Actor.BOTH],
    )
    assert costs.emitter == Decimal("26.00")
    assert costs.bondholder == Decimal("7.50")


def test_bondholder_only_and_zero_defaults():
    costs = allocate_initial_costs(Decimal(500), [Decimal(1), 0, None], ["bondholder", "emitter", "both"])
    assert costs.emitter == 0
    assert costs.bondholder == Decimal(5)


def test_invalid_actor_raises():
    with pytest.raises(ConfigurationError):
        allocate_initial_costs(Decimal(1000), [Decimal(1)], ["issuer"])


def test_costs_from_specification(spec_factory):
    spec = spec_factory(structuring=1, placement=Decimal("0.5"), settlement_actor="bondholder", settlement=2)
    costs = initial_costs_for(spec)
    assert costs.emitter == Decimal(15)
    assert costs.bondholder == Decimal(20)
