"""Tests for the Liquidity Coverage Ratio calculator."""

import pytest
from datetime import date

from liquidity_engine.core.config import LiquidityConfig
from liquidity_engine.core.line_item import LineItem, ProductCategory, MaturityBucket
from liquidity_engine.liquidity.lcr import LCRCalculator, OutflowCategory

REPORT_DATE = date(2024, 3, 29)


def assert_lcr_identity(result, config=None):
    """Assert that net outflows respect the inflow cap and outflow floor."""
    config = config or LiquidityConfig()
    inflow_cap = config.lcr.inflows.inflow_cap
    floor = config.lcr.outflow_floor

    capped = min(result.total_cash_inflows, inflow_cap * result.total_cash_outflows)
    expected = max(result.total_cash_outflows - capped, floor * result.total_cash_outflows)
    assert abs(result.net_cash_outflows - expected) <= 1e-6 * max(1.0, expected), \
        f"Net outflows {result.net_cash_outflows} should equal {expected}"
    assert result.net_cash_outflows >= floor * result.total_cash_outflows - 1e-9


def make_item(product_id="X", **overrides):
    fields = dict(
        product_id=product_id,
        category=ProductCategory.OTHER_ASSETS,
        maturity_bucket=MaturityBucket.OPEN,
        counterparty_type="wholesale",
    )
    fields.update(overrides)
    return LineItem(**fields)


class TestLCRScenario:
    """Treasury, stable retail deposit and derivative outflow."""

    def test_scenario_figures(self, lcr_scenario_items):
        result = LCRCalculator().calculate_lcr(lcr_scenario_items)

        assert result.level_1_hqla == pytest.approx(100)
        assert result.total_hqla == pytest.approx(100)
        assert result.details.retail_deposit_outflows == pytest.approx(30)
        assert result.details.derivatives_outflows == pytest.approx(50)
        assert result.total_cash_outflows == pytest.approx(80)
        assert result.total_cash_inflows == 0
        assert result.net_cash_outflows == pytest.approx(80)
        assert result.lcr_ratio == pytest.approx(1.25)
        assert result.is_compliant

    def test_report_date_taken_from_items(self, lcr_scenario_items):
        result = LCRCalculator().calculate_lcr(lcr_scenario_items)
        assert result.report_date == REPORT_DATE

    def test_explicit_report_date_wins(self, lcr_scenario_items):
        result = LCRCalculator().calculate_lcr(lcr_scenario_items, report_date=date(2024, 1, 31))
        assert result.report_date == date(2024, 1, 31)

    def test_accepts_generator(self, lcr_scenario_items):
        result = LCRCalculator().calculate_lcr(item for item in lcr_scenario_items)
        assert result.lcr_ratio == pytest.approx(1.25)


class TestHQLA:
    """Test HQLA levels, haircuts and caps."""

    def test_haircut_and_encumbrance(self):
        item = make_item(category=ProductCategory.SECURITIES, outstanding_balance=1000,
                         encumbered_amount=200, haircut=0.1, is_hqla=True, hqla_level=1)
        hqla = LCRCalculator().compute_hqla([item])
        assert hqla.level_1 == pytest.approx(720)

    def test_level_2_factors(self):
        items = [
            make_item("L1", category=ProductCategory.SECURITIES, outstanding_balance=10_000,
                      is_hqla=True, hqla_level=1),
            make_item("L2A", category=ProductCategory.SECURITIES, outstanding_balance=1000,
                      is_hqla=True, hqla_level=2),
            make_item("L2B", category=ProductCategory.SECURITIES, outstanding_balance=1000,
                      is_hqla=True, hqla_level=3),
        ]
        hqla = LCRCalculator().compute_hqla(items)
        assert hqla.level_2a == pytest.approx(850)
        assert hqla.level_2b == pytest.approx(500)
        assert hqla.total == pytest.approx(11_350)

    def test_level_2_caps_relative_to_level_1(self):
        items = [
            make_item("L1", category=ProductCategory.SECURITIES, outstanding_balance=850,
                      is_hqla=True, hqla_level=1),
            make_item("L2A", category=ProductCategory.SECURITIES, outstanding_balance=10_000,
                      is_hqla=True, hqla_level=2),
            make_item("L2B", category=ProductCategory.SECURITIES, outstanding_balance=10_000,
                      is_hqla=True, hqla_level=3),
        ]
        hqla = LCRCalculator().compute_hqla(items)
        assert hqla.level_2a == pytest.approx(850 * 2 / 3)
        assert hqla.level_2b == pytest.approx(150)

    def test_no_level_1_means_no_level_2(self):
        item = make_item(category=ProductCategory.SECURITIES, outstanding_balance=1000,
                         is_hqla=True, hqla_level=2)
        hqla = LCRCalculator().compute_hqla([item])
        assert hqla.total == 0

    def test_non_hqla_ignored(self):
        item = make_item(category=ProductCategory.SECURITIES, outstanding_balance=1000, hqla_level=1)
        assert LCRCalculator().compute_hqla([item]).total == 0


class TestCashOutflows:
    """Test outflow categorization and runoff rates."""

    @pytest.mark.parametrize("counterparty,sub_product,expected", [
        ("retail", "stable", 30),
        ("retail", "less_stable", 100),
        ("retail", None, 100),
        ("wholesale", "operational", 250),
        ("financial_institution", "operational", 250),
        ("financial_institution", "non_operational", 1000),
        ("wholesale", "non_operational", 400),
    ])
    def test_deposit_runoff_rates(self, counterparty, sub_product, expected):
        item = make_item(category=ProductCategory.DEPOSITS, counterparty_type=counterparty,
                         sub_product=sub_product, outstanding_balance=1000)
        outflows = LCRCalculator().compute_cash_outflows([item])
        assert outflows.total == pytest.approx(expected)

    def test_declared_runoff_rate_honored(self):
        item = make_item(category=ProductCategory.DEPOSITS, counterparty_type="retail",
                         sub_product="stable", outstanding_balance=1000, runoff_rate=0.05)
        assert LCRCalculator().compute_cash_outflows([item]).retail == pytest.approx(50)

    def test_declared_zero_runoff_rate_honored(self):
        item = make_item(category=ProductCategory.DEPOSITS, counterparty_type="wholesale",
                         outstanding_balance=1000, runoff_rate=0.0)
        assert LCRCalculator().compute_cash_outflows([item]).wholesale == 0

    def test_deposit_from_other_counterparty_has_no_outflow(self):
        item = make_item(category=ProductCategory.DEPOSITS, counterparty_type="central_bank",
                         outstanding_balance=1000)
        assert LCRCalculator().compute_cash_outflows([item]).total == 0

    def test_secured_funding_by_collateral(self):
        level_1 = make_item("REPO_1", category=ProductCategory.SECURED_FUNDING, outstanding_balance=1000,
                            projected_cash_outflow=1000, is_hqla=True, hqla_level=1)
        other = make_item("REPO_2", category=ProductCategory.SECURED_FUNDING, outstanding_balance=500,
                          projected_cash_outflow=500)
        outflows = LCRCalculator().compute_cash_outflows([level_1, other])
        assert outflows.secured == pytest.approx(500)

    def test_non_deposit_without_projected_outflow_skipped(self):
        repo = make_item(category=ProductCategory.SECURED_FUNDING, outstanding_balance=1000)
        facility = make_item(category=ProductCategory.CREDIT_FACILITIES, outstanding_balance=1000,
                             maturity_bucket=MaturityBucket.GT_1_YEAR)
        assert LCRCalculator().compute_cash_outflows([repo, facility]).total == 0

    def test_other_contractual_within_30_days(self):
        short = make_item("A", category=ProductCategory.OTHER_LIABILITIES,
                          maturity_bucket=MaturityBucket.DAYS_2_7, projected_cash_outflow=70)
        late = make_item("B", category=ProductCategory.OTHER_LIABILITIES,
                         maturity_bucket=MaturityBucket.DAYS_31_90, projected_cash_outflow=70)
        outflows = LCRCalculator().compute_cash_outflows([short, late])
        assert outflows.other_contractual == pytest.approx(70)
        assert outflows.total == pytest.approx(70)

    def test_facility_drawdown(self):
        item = make_item(category=ProductCategory.LIQUIDITY_FACILITIES, outstanding_balance=2000,
                         maturity_bucket=MaturityBucket.GT_1_YEAR, projected_cash_outflow=1)
        outflows = LCRCalculator().compute_cash_outflows([item])
        assert outflows.other_contingent == pytest.approx(100)

    def test_short_dated_facility_counts_as_contractual(self):
        item = make_item(category=ProductCategory.CREDIT_FACILITIES, outstanding_balance=2000,
                         maturity_bucket=MaturityBucket.OVERNIGHT, projected_cash_outflow=300)
        outflows = LCRCalculator().compute_cash_outflows([item])
        assert outflows.other_contractual == pytest.approx(300)
        assert outflows.other_contingent == 0

    def test_by_category_covers_all_categories(self, diversified_items):
        outflows = LCRCalculator().compute_cash_outflows(diversified_items)
        by_category = outflows.by_category()
        assert set(by_category) == set(OutflowCategory)
        assert sum(by_category.values()) == pytest.approx(outflows.total)


class TestCashInflows:
    """Test inflow rates and horizon."""

    def test_loan_inflows_within_horizon(self):
        items = [
            make_item("LN_1", category=ProductCategory.LOANS, maturity_bucket=MaturityBucket.DAYS_8_30,
                      projected_cash_inflow=1000),
            make_item("LN_2", category=ProductCategory.LOANS, maturity_bucket=MaturityBucket.DAYS_31_90,
                      projected_cash_inflow=1000),
        ]
        assert LCRCalculator().compute_cash_inflows(items).total == pytest.approx(500)

    def test_other_inflows_at_full_rate(self):
        item = make_item(category=ProductCategory.SECURED_FUNDING, sub_product="reverse_repo",
                         counterparty_type="central_bank", projected_cash_inflow=400)
        assert LCRCalculator().compute_cash_inflows([item]).total == pytest.approx(400)

    def test_inflow_cap(self):
        items = [
            make_item("DEP", category=ProductCategory.DEPOSITS, counterparty_type="financial_institution",
                      outstanding_balance=1000),
            make_item("IN", category=ProductCategory.SECURITIES, projected_cash_inflow=5000),
        ]
        result = LCRCalculator().calculate_lcr(items)
        assert result.total_cash_inflows == pytest.approx(5000)
        assert result.details.capped_inflows == pytest.approx(750)
        assert result.net_cash_outflows == pytest.approx(250)
        assert_lcr_identity(result)


class TestLCRRatio:
    """Test ratio edge cases."""

    def test_empty_input(self):
        result = LCRCalculator().calculate_lcr([])
        assert result.lcr_ratio == 0
        assert not result.is_compliant
        assert result.report_date is None

    def test_hqla_without_outflows(self, treasury_item):
        result = LCRCalculator().calculate_lcr([treasury_item])
        assert result.total_hqla == pytest.approx(100)
        assert result.net_cash_outflows == 0
        assert result.lcr_ratio == 0

    def test_diversified_balance_sheet(self, diversified_items):
        result = LCRCalculator().calculate_lcr(diversified_items)

        assert result.level_1_hqla == pytest.approx(1_350_000)
        assert result.level_2a_hqla == pytest.approx(289_000)
        assert result.level_2b_hqla == pytest.approx(37_500)
        assert result.details.retail_deposit_outflows == pytest.approx(110_000)
        assert result.details.wholesale_funding_outflows == pytest.approx(420_000)
        assert result.details.secured_funding_outflows == pytest.approx(120_000)
        assert result.details.derivatives_outflows == pytest.approx(40_000)
        assert result.details.other_contractual_outflows == pytest.approx(60_000)
        assert result.details.other_contingent_outflows == pytest.approx(40_000)
        assert result.total_cash_outflows == pytest.approx(790_000)
        assert result.total_cash_inflows == pytest.approx(380_000)
        assert result.net_cash_outflows == pytest.approx(410_000)
        assert result.lcr_ratio == pytest.approx(1_676_500 / 410_000)
        assert_lcr_identity(result)

    def test_custom_minimum_ratio(self, lcr_scenario_items):
        config = LiquidityConfig()
        config.lcr.minimum_ratio = 1.5
        result = LCRCalculator(config).calculate_lcr(lcr_scenario_items)
        assert result.lcr_ratio == pytest.approx(1.25)
        assert not result.is_compliant
