"""Pytest configuration and shared fixtures."""

import pytest
import tempfile
from datetime import date
from pathlib import Path

from liquidity_engine.core.config import LiquidityConfig
from liquidity_engine.core.line_item import LineItem, ProductCategory, MaturityBucket
from liquidity_engine.validation.models import DataRow, ValidationRule


REPORT_DATE = date(2024, 3, 29)


@pytest.fixture(scope="session")
def test_config():
    """Test configuration fixture."""
    return LiquidityConfig.load_default()


@pytest.fixture
def temp_dir():
    """Temporary directory fixture."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def treasury_item():
    """Unencumbered Level 1 Treasury holding."""
    return LineItem(
        product_id="UST_001",
        product_name="US Treasury 2Y",
        category=ProductCategory.SECURITIES,
        sub_product="treasury",
        maturity_bucket=MaturityBucket.GT_1_YEAR,
        counterparty_type="sovereign",
        asset_class="sovereign",
        outstanding_balance=100,
        is_hqla=True,
        hqla_level=1,
        report_date=REPORT_DATE,
    )


@pytest.fixture
def stable_retail_deposit():
    """Stable retail deposit without declared factors."""
    return LineItem(
        product_id="DEP_RET_001",
        product_name="Retail Checking",
        category=ProductCategory.DEPOSITS,
        sub_product="stable",
        maturity_bucket=MaturityBucket.OPEN,
        counterparty_type="retail",
        outstanding_balance=1000,
        report_date=REPORT_DATE,
    )


@pytest.fixture
def derivative_outflow():
    """Derivative with a projected contractual outflow."""
    return LineItem(
        product_id="DRV_001",
        product_name="Interest Rate Swap",
        category=ProductCategory.DERIVATIVES,
        sub_product="interest_rate_swap",
        maturity_bucket=MaturityBucket.DAYS_8_30,
        counterparty_type="financial_institution",
        projected_cash_outflow=50,
        report_date=REPORT_DATE,
    )


@pytest.fixture
def lcr_scenario_items(treasury_item, stable_retail_deposit, derivative_outflow):
    """Treasury, stable retail deposit and derivative outflow."""
    return [treasury_item, stable_retail_deposit, derivative_outflow]


@pytest.fixture
def nsfr_scenario_items(stable_retail_deposit):
    """Capital, stable retail deposit and long-dated commercial loan."""
    capital = LineItem(
        product_id="CAP_001",
        category=ProductCategory.CAPITAL,
        sub_product="common_equity",
        maturity_bucket=MaturityBucket.OPEN,
        counterparty_type="shareholder",
        outstanding_balance=500,
    )
    loan = LineItem(
        product_id="LN_COM_001",
        category=ProductCategory.LOANS,
        sub_product="commercial",
        maturity_bucket=MaturityBucket.GT_1_YEAR,
        counterparty_type="wholesale",
        outstanding_balance=1000,
        required_stable_funding_factor=0.85,
    )
    return [capital, stable_retail_deposit, loan]


@pytest.fixture
def diversified_items():
    """Balance sheet touching every outflow, inflow and HQLA treatment."""
    return [
        LineItem(product_id="UST_001", category=ProductCategory.SECURITIES, sub_product="treasury",
                 maturity_bucket=MaturityBucket.GT_1_YEAR, counterparty_type="sovereign",
                 asset_class="sovereign", outstanding_balance=1_000_000, encumbered_amount=100_000,
                 is_hqla=True, hqla_level=1),
        LineItem(product_id="RES_001", category=ProductCategory.OTHER_ASSETS, sub_product="central_bank_reserves",
                 maturity_bucket=MaturityBucket.OVERNIGHT, counterparty_type="central_bank",
                 asset_class="cash", outstanding_balance=200_000, is_hqla=True, hqla_level=1),
        LineItem(product_id="GSE_001", category=ProductCategory.SECURITIES, sub_product="agency_mbs",
                 maturity_bucket=MaturityBucket.GT_1_YEAR, counterparty_type="gse",
                 asset_class="agency", outstanding_balance=400_000, haircut=0.15,
                 is_hqla=True, hqla_level=2),
        LineItem(product_id="CORP_001", category=ProductCategory.SECURITIES, sub_product="corporate_bond",
                 maturity_bucket=MaturityBucket.GT_1_YEAR, counterparty_type="wholesale",
                 asset_class="corporate", outstanding_balance=150_000, haircut=0.5,
                 is_hqla=True, hqla_level=3),
        LineItem(product_id="DEP_RET_S", category=ProductCategory.DEPOSITS, sub_product="stable",
                 maturity_bucket=MaturityBucket.OPEN, counterparty_type="retail",
                 outstanding_balance=2_000_000),
        LineItem(product_id="DEP_RET_L", category=ProductCategory.DEPOSITS, sub_product="less_stable",
                 maturity_bucket=MaturityBucket.OPEN, counterparty_type="retail",
                 outstanding_balance=500_000),
        LineItem(product_id="DEP_WS_OP", category=ProductCategory.DEPOSITS, sub_product="operational",
                 maturity_bucket=MaturityBucket.OPEN, counterparty_type="wholesale",
                 outstanding_balance=800_000),
        LineItem(product_id="DEP_FI", category=ProductCategory.DEPOSITS, sub_product="non_operational",
                 maturity_bucket=MaturityBucket.DAYS_8_30, counterparty_type="financial_institution",
                 outstanding_balance=100_000),
        LineItem(product_id="DEP_WS_NO", category=ProductCategory.DEPOSITS, sub_product="non_operational",
                 maturity_bucket=MaturityBucket.DAYS_31_90, counterparty_type="wholesale",
                 outstanding_balance=300_000),
        LineItem(product_id="REPO_L1", category=ProductCategory.SECURED_FUNDING, sub_product="repo",
                 maturity_bucket=MaturityBucket.OVERNIGHT, counterparty_type="financial_institution",
                 outstanding_balance=250_000, projected_cash_outflow=250_000,
                 is_hqla=True, hqla_level=1),
        LineItem(product_id="REPO_OTH", category=ProductCategory.SECURED_FUNDING, sub_product="repo",
                 maturity_bucket=MaturityBucket.DAYS_2_7, counterparty_type="financial_institution",
                 outstanding_balance=120_000, projected_cash_outflow=120_000),
        LineItem(product_id="DRV_001", category=ProductCategory.DERIVATIVES, sub_product="fx_forward",
                 maturity_bucket=MaturityBucket.DAYS_8_30, counterparty_type="financial_institution",
                 projected_cash_outflow=40_000),
        LineItem(product_id="OTH_001", category=ProductCategory.OTHER_LIABILITIES, sub_product="payables",
                 maturity_bucket=MaturityBucket.DAYS_2_7, counterparty_type="wholesale",
                 outstanding_balance=60_000, projected_cash_outflow=60_000),
        LineItem(product_id="FAC_CR", category=ProductCategory.CREDIT_FACILITIES, sub_product="revolver",
                 maturity_bucket=MaturityBucket.GT_1_YEAR, counterparty_type="wholesale",
                 outstanding_balance=600_000, projected_cash_outflow=30_000),
        LineItem(product_id="FAC_LQ", category=ProductCategory.LIQUIDITY_FACILITIES, sub_product="backstop",
                 maturity_bucket=MaturityBucket.GT_1_YEAR, counterparty_type="financial_institution",
                 outstanding_balance=200_000, projected_cash_outflow=10_000),
        LineItem(product_id="LN_SHORT", category=ProductCategory.LOANS, sub_product="commercial",
                 maturity_bucket=MaturityBucket.DAYS_8_30, counterparty_type="wholesale",
                 outstanding_balance=300_000, projected_cash_inflow=300_000),
        LineItem(product_id="LN_LONG", category=ProductCategory.LOANS, sub_product="mortgage",
                 maturity_bucket=MaturityBucket.GT_1_YEAR, counterparty_type="retail",
                 outstanding_balance=1_500_000, projected_cash_inflow=90_000),
        LineItem(product_id="RREPO_CB", category=ProductCategory.SECURED_FUNDING, sub_product="reverse_repo",
                 maturity_bucket=MaturityBucket.OVERNIGHT, counterparty_type="central_bank",
                 projected_cash_inflow=150_000),
        LineItem(product_id="SEC_MAT", category=ProductCategory.SECURITIES, sub_product="commercial_paper",
                 maturity_bucket=MaturityBucket.DAYS_8_30, counterparty_type="wholesale",
                 outstanding_balance=80_000, projected_cash_inflow=80_000),
        LineItem(product_id="CAP_001", category=ProductCategory.CAPITAL, sub_product="common_equity",
                 maturity_bucket=MaturityBucket.OPEN, counterparty_type="shareholder",
                 outstanding_balance=900_000),
    ]


@pytest.fixture
def submission_rows():
    """Clean FR 2052a submission rows."""
    return [
        DataRow(id="row_1", reporting_entity="BANK_A", legal_entity_id="LE_001", product="deposits",
                sub_product="retail", counterparty="retail", maturity_bucket="open", currency="USD",
                internal_flag="No", lendable_value=90.0, market_value=100.0, maturity_date=date(2024, 4, 1)),
        DataRow(id="row_2", reporting_entity="BANK_A", legal_entity_id="LE_001", product="loans",
                sub_product="commercial", counterparty="wholesale", maturity_bucket="8-30days", currency="EUR",
                internal_flag="Yes", internal_counterparty="LE_002", lendable_value=40.0, market_value=50.0),
        DataRow(id="row_3", reporting_entity="BANK_A", legal_entity_id="LE_002", product="securities",
                sub_product="treasury", counterparty="sovereign", maturity_bucket="gt_1year", currency="GBP"),
    ]


@pytest.fixture
def allowed_values():
    """Allowed-value registry keyed by rule target field."""
    return {
        "MaturityBucket": ["open", "overnight", "2-7days", "8-30days", "31-90days",
                           "91-180days", "181-365days", "gt_1year"],
        "Product": ["deposits", "loans", "securities", "derivatives", "secured_funding"],
    }


@pytest.fixture
def legal_entities():
    """Legal entity registry."""
    return ["LE_001", "LE_002"]


@pytest.fixture
def rule_registry():
    """One active rule per implemented category."""
    return [
        ValidationRule(id="R001", category="enumeration", name="Maturity Bucket Values",
                       target_field="MaturityBucket"),
        ValidationRule(id="R002", category="data_type", name="ISO Currency Code", target_field="Currency"),
        ValidationRule(id="R003", category="cross_field", name="Lendable Value Check",
                       target_field="LendableValue"),
        ValidationRule(id="R004", category="field_dependency", name="Internal Counterparty Required",
                       target_field="InternalCounterparty"),
        ValidationRule(id="R005", category="duplicate", name="Duplicate Row Check"),
        ValidationRule(id="R006", category="legal_entity", name="Legal Entity Exists",
                       target_field="ReportingEntity"),
    ]


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "property: marks tests as property-based tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Mark property-based tests
        if "test_properties" in item.nodeid:
            item.add_marker(pytest.mark.property)

        # Mark integration tests
        if "integration" in item.nodeid or "test_engine" in item.nodeid:
            item.add_marker(pytest.mark.integration)
