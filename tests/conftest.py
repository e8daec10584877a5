import pandas as pd
import pytest

from bond_cashflow_engine.bonds import BondSpecification


def make_spec(**overrides) -> BondSpecification:
    """Three-year semi-annual bond, 7.5% effective, no costs, COK 5%, tax 30%."""
    base = dict(
        commercial_value=1000,
        interest_rate=7.5,
        interest_rate_type="effective",
        payment_frequency="semi_annual",
        tenor_years=3,
        emission_date=pd.Timestamp("2022-07-01"),
        amortization_method="german",
        cok=5,
        income_tax=30,
    )
    base.update(overrides)
    return BondSpecification(**base)


@pytest.fixture(scope="module")
def spec_factory():
    return make_spec
