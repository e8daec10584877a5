from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pandas as pd
import pytest

from bond_cashflow_engine.bonds import GraceType
from bond_cashflow_engine.config import EngineConfig, TotalGracePolicy
from bond_cashflow_engine.engine import calculate
from bond_cashflow_engine.errors import ConfigurationError, ScheduleError

R = 1.075 ** 0.5 - 1  # semi-annual rate of 7.5% effective


@pytest.fixture(scope="module")
def scenario_a(spec_factory):
    return calculate(spec_factory())


@pytest.fixture(scope="module")
def original_case(spec_factory):
    """German bond with costs, premium and two partial grace periods."""
    return calculate(
        spec_factory(
            interest_rate_type="nominal",
            compounding_frequency="daily",
            premium="0.8",
            premium_timing="beginning",
            structuring="0.9",
            placement="0.95",
            flotation="0.3",
            settlement="0.45",
            cok="2.436",
            grace_periods=[{"period": 1, "type": "partial"}, {"period": 2, "type": "partial"}],
        )
    )


def test_scenario_a_constant_amortization(scenario_a):
    periods = scenario_a.periods
    assert len(periods) == 7
    assert all(float(p.amortization) == pytest.approx(166.67, abs=0.005) for p in periods[1:])
    assert abs(sum(p.amortization for p in periods[1:]) - 1000) < Decimal("1e-6") * 1000
    assert float(periods[1].coupon) == pytest.approx(1000 * R, rel=1e-12)


def test_scenario_a_summary_grid(scenario_a):
    s = scenario_a.summary
    assert s.frequency_days == 180
    assert s.compounding_days is None
    assert s.periods_per_year == 2
    assert s.total_periods == 6
    assert float(s.effective_annual_rate) == pytest.approx(7.5, abs=1e-20)
    assert float(s.effective_period_rate) == pytest.approx(100 * R, rel=1e-12)
    assert float(s.period_cok) == pytest.approx(100 * (1.05 ** 0.5 - 1), rel=1e-12)
    assert s.emitter_initial_costs == 0 and s.bondholder_initial_costs == 0


def test_scenario_a_yields_match_coupon_rate(scenario_a):
    s = scenario_a.summary
    assert not s.degraded
    assert float(s.bondholder_trea) == pytest.approx(7.5, abs=1e-6)
    assert float(s.emitter_tcea) == pytest.approx(7.5, abs=1e-6)
    # a 30% shield turns the emitter's cost into 70% of the coupon rate per period
    assert float(s.emitter_tcea_with_shield) == pytest.approx(100 * ((1 + 0.7 * R) ** 2 - 1), abs=1e-6)


def test_scenario_a_discounted_metrics(scenario_a):
    s = scenario_a.summary
    c = 1.05 ** 0.5 - 1
    flows = [float(p.bondholder_flow) for p in scenario_a.periods[1:]]
    pv = [f / (1 + c) ** i for i, f in enumerate(flows, start=1)]
    price = sum(pv)
    duration = sum(v * i * 0.5 for i, v in enumerate(pv, start=1)) / price
    convexity = sum(v * i * (i + 1) for i, v in enumerate(pv, start=1)) / ((1 + c) ** 2 * price * 4)

    assert float(s.actual_price) == pytest.approx(price, rel=1e-12)
    assert float(s.utility) == pytest.approx(price - 1000, rel=1e-9)
    assert float(s.duration) == pytest.approx(duration, rel=1e-12)
    assert float(s.convexity) == pytest.approx(convexity, rel=1e-12)
    assert float(s.modified_duration) == pytest.approx(duration / (1 + c), rel=1e-12)
    assert s.total == s.duration + s.convexity
    assert 0 < s.duration < 3


def test_price_at_coupon_rate_is_par(spec_factory):
    s = calculate(spec_factory(cok="7.5")).summary
    assert abs(s.actual_price - 1000) < Decimal("1e-9")
    assert abs(s.utility) < Decimal("1e-9")


def test_flow_signs_and_period_zero(scenario_a):
    p0 = scenario_a.periods[0]
    assert p0.grace is None
    assert p0.date == pd.Timestamp("2022-07-01")
    assert p0.emitter_flow == 1000 and p0.bondholder_flow == -1000
    for name in ("balance", "coupon", "quota", "amortization", "premium", "shield", "actualized_flow"):
        assert getattr(p0, name) == 0
    for p in scenario_a.periods[1:]:
        assert p.grace is GraceType.NONE
        assert p.emitter_flow < 0 < p.bondholder_flow
        assert p.emitter_flow == -p.bondholder_flow
        assert p.emitter_flow_with_shield == p.emitter_flow + p.shield
        assert p.shield == p.coupon * Decimal("0.3")


def test_scenario_b_partial_grace_first_period(spec_factory):
    periods = calculate(spec_factory(grace_periods=[{"period": 1, "type": "partial"}])).periods
    assert periods[1].grace is GraceType.PARTIAL
    assert periods[1].amortization == 0
    assert periods[1].quota == periods[1].coupon
    assert periods[2].balance == periods[1].balance == 1000
    assert all(p.amortization == 200 for p in periods[2:])


def test_scenario_c_premium_at_beginning(spec_factory):
    periods = calculate(spec_factory(premium="0.8", premium_timing="beginning")).periods
    assert all(p.premium == 0 for p in periods[:-1])
    assert periods[-1].premium == Decimal("8.00")
    assert periods[-1].bondholder_flow == periods[-1].quota + 8


def test_scenario_d_nominal_without_compounding(spec_factory):
    with pytest.raises(ConfigurationError):
        calculate(spec_factory(interest_rate_type="nominal"))


def test_original_case_costs_and_grace(original_case):
    s = original_case.summary
    p = original_case.periods
    assert s.compounding_days == 1
    assert float(s.effective_annual_rate) == pytest.approx(100 * ((1 + 0.075 / 360) ** 360 - 1), rel=1e-10)
    assert s.emitter_initial_costs == Decimal("26")
    assert s.bondholder_initial_costs == Decimal("7.5")
    assert p[0].emitter_flow == Decimal("974") and p[0].bondholder_flow == Decimal("-1007.5")
    assert [x.amortization for x in p[1:3]] == [0, 0]
    assert all(x.amortization == 250 for x in p[3:])
    assert p[-1].premium == 8
    assert s.emitter_tcea > s.effective_annual_rate
    assert s.emitter_tcea_with_shield < s.emitter_tcea
    assert not s.degraded


def test_french_quarterly_uses_its_own_day_count(spec_factory):
    res = calculate(spec_factory(amortization_method="french", payment_frequency="quarterly", tenor_years=1))
    s = res.summary
    assert s.frequency_days == 120
    assert s.total_periods == 3
    assert [p.date for p in res.periods] == [
        pd.Timestamp("2022-07-01"),
        pd.Timestamp("2022-10-01"),
        pd.Timestamp("2023-01-01"),
        pd.Timestamp("2023-04-01"),
    ]
    assert len({p.quota for p in res.periods[1:]}) == 1
    assert float(s.bondholder_trea) == pytest.approx(7.5, abs=1e-6)


def test_total_grace_policy_is_configurable(spec_factory):
    spec = spec_factory(grace_periods=[{"period": 2, "type": "total"}])
    waived = calculate(spec).periods
    capitalized = calculate(spec, EngineConfig(total_grace_policy=TotalGracePolicy.CAPITALIZE)).periods

    assert waived[2].quota == 0 and waived[2].amortization == 0
    assert waived[3].balance == waived[2].balance
    assert capitalized[3].balance == capitalized[2].balance + capitalized[2].coupon
    assert abs(sum(p.amortization for p in capitalized[1:]) - capitalized[3].balance - 200) < Decimal("1e-9")


def test_grace_index_out_of_range(spec_factory):
    with pytest.raises(ScheduleError):
        calculate(spec_factory(grace_periods=[{"period": 7, "type": "partial"}]))


def test_duplicate_grace_index(spec_factory):
    with pytest.raises(ScheduleError):
        spec_factory(grace_periods=[{"period": 2, "type": "partial"}, {"period": 2, "type": "total"}])


def test_all_periods_in_grace(spec_factory):
    grace = [{"period": i, "type": "partial"} for i in range(1, 7)]
    with pytest.raises(ScheduleError):
        calculate(spec_factory(grace_periods=grace))


def test_idempotent(spec_factory):
    spec = spec_factory(premium="0.8", grace_periods=[{"period": 3, "type": "total"}])
    assert calculate(spec) == calculate(spec)


def test_precision_is_per_call_and_thread_safe(spec_factory):
    spec = spec_factory(amortization_method="french")
    low, high = EngineConfig(precision=12), EngineConfig(precision=40)
    expected_low, expected_high = calculate(spec, low), calculate(spec, high)

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda cfg: calculate(spec, cfg), [low, high] * 4))

    assert results[0::2] == [expected_low] * 4
    assert results[1::2] == [expected_high] * 4
    assert abs(expected_low.summary.actual_price - expected_high.summary.actual_price) < Decimal("1e-6")


def test_schedule_frames(scenario_a):
    frame = scenario_a.to_frame(rounded=True)
    assert len(frame) == 7
    assert list(frame["period"]) == list(range(7))
    assert frame.loc[0, "grace"] == ""
    assert frame.loc[1, "grace"] == "none"
    assert frame.loc[1, "amortization"] == Decimal("166.67")

    summary = scenario_a.summary_frame().set_index("metric")["value"]
    assert summary["total_periods"] == 6
    assert not summary["degraded"]
