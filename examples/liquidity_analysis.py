"""
Example showing LCR, NSFR, component breakdown and FR 2052a data validation.

This example builds a small FR 2052a extract in a pandas DataFrame, loads it
into line items, and runs every part of the Liquidity Engine over it.
"""

import logging

import pandas as pd

from liquidity_engine import LiquidityEngine, ValidationRule, line_items_from_frame
from liquidity_engine.data.loader import data_rows_from_frame


EXTRACT = [
    # productId, category, subProduct, maturity, counterparty, balance, inflow, outflow, isHQLA, level, haircut
    ("UST_001", "securities", "treasury", "gt_1year", "sovereign", 4_000_000, 0, 0, True, 1, 0.0),
    ("RES_001", "other_assets", "central_bank_reserves", "overnight", "central_bank", 1_500_000, 0, 0, True, 1, 0.0),
    ("GSE_001", "securities", "agency_mbs", "gt_1year", "gse", 1_200_000, 0, 0, True, 2, 0.15),
    ("DEP_001", "deposits", "stable", "open", "retail", 9_000_000, 0, 0, False, None, 0.0),
    ("DEP_002", "deposits", "less_stable", "open", "retail", 3_000_000, 0, 0, False, None, 0.0),
    ("DEP_003", "deposits", "operational", "open", "wholesale", 4_000_000, 0, 0, False, None, 0.0),
    ("DEP_004", "deposits", "non_operational", "8-30days", "financial_institution", 800_000, 0, 0, False, None, 0.0),
    ("DRV_001", "derivatives", "fx_forward", "8-30days", "financial_institution", 0, 0, 150_000, False, None, 0.0),
    ("FAC_001", "credit_facilities", "revolver", "gt_1year", "wholesale", 2_500_000, 0, 100_000, False, None, 0.0),
    ("LN_001", "loans", "commercial", "8-30days", "wholesale", 1_000_000, 1_000_000, 0, False, None, 0.0),
    ("LN_002", "loans", "mortgage", "gt_1year", "retail", 8_000_000, 60_000, 0, False, None, 0.0),
    ("RRP_001", "secured_funding", "reverse_repo", "overnight", "central_bank", 0, 500_000, 0, False, None, 0.0),
    ("CAP_001", "capital", "common_equity", "open", "shareholder", 3_500_000, 0, 0, False, None, 0.0),
]

COLUMNS = ["productId", "productCategory", "subProduct", "maturityBucket", "counterpartyType",
           "outstandingBalance", "projectedCashInflow", "projectedCashOutflow", "isHQLA", "hqlaLevel", "haircut"]


def main():
    """Run a complete liquidity analysis."""

    logging.basicConfig(level=logging.WARNING)

    print("Liquidity Engine - LCR / NSFR Analysis")
    print("=" * 60)

    # 1. Load line items
    frame = pd.DataFrame(EXTRACT, columns=COLUMNS)
    items = line_items_from_frame(frame)
    print(f"\nLoaded {len(items)} line items")

    # 2. Ratios and breakdown
    engine = LiquidityEngine()
    results = engine.calculate_all(items)

    lcr = results.lcr
    print("\nLiquidity Coverage Ratio")
    print(f"  Total HQLA: ${lcr.total_hqla:,.0f}")
    print(f"    Level 1: ${lcr.level_1_hqla:,.0f}")
    print(f"    Level 2A: ${lcr.level_2a_hqla:,.0f}")
    print(f"    Level 2B: ${lcr.level_2b_hqla:,.0f}")
    print(f"  Total Outflows: ${lcr.total_cash_outflows:,.0f}")
    print(f"  Total Inflows: ${lcr.total_cash_inflows:,.0f} (capped ${lcr.details.capped_inflows:,.0f})")
    print(f"  Net Cash Outflows: ${lcr.net_cash_outflows:,.0f}")
    print(f"  LCR: {lcr.lcr_ratio:.1%} ({'compliant' if lcr.is_compliant else 'BREACH'})")

    nsfr = results.nsfr
    print("\nNet Stable Funding Ratio")
    print(f"  Available Stable Funding: ${nsfr.available_stable_funding:,.0f}")
    print(f"  Required Stable Funding: ${nsfr.required_stable_funding:,.0f}")
    print(f"  NSFR: {nsfr.nsfr_ratio:.1%} ({'compliant' if nsfr.is_compliant else 'BREACH'})")

    print("\nOutflow components")
    for component in results.breakdown.outflow_components:
        print(f"  {component.regulatory_reference:<45} ${component.computed_amount:>12,.0f}  "
              f"{component.methodology}")

    print(f"\nBreakdown reconciled: {results.reconciliation.reconciled}")

    # 3. Data validation
    rows = data_rows_from_frame(pd.DataFrame([
        {"id": "r1", "ReportingEntity": "LE_001", "Product": "deposits", "MaturityBucket": "open",
         "Currency": "USD", "Internal": "No"},
        {"id": "r2", "ReportingEntity": "LE_001", "Product": "loans", "MaturityBucket": "8-30days",
         "Currency": "XYZ", "Internal": "Yes"},
        {"id": "r3", "ReportingEntity": "LE_404", "Product": "loans", "MaturityBucket": "someday",
         "Currency": "EUR", "Internal": "No"},
    ]))
    rules = [
        ValidationRule(id="R1", category="enumeration", name="Maturity Bucket", target_field="MaturityBucket"),
        ValidationRule(id="R2", category="data_type", name="ISO Currency", target_field="Currency"),
        ValidationRule(id="R3", category="field_dependency", name="Internal Counterparty",
                       target_field="InternalCounterparty"),
        ValidationRule(id="R4", category="legal_entity", name="Legal Entity", target_field="ReportingEntity"),
        ValidationRule(id="R5", category="submission_frequency", name="Submission Frequency"),
    ]
    validation = engine.validate(
        rows, rules, "SUB_2024_03",
        allowed_values={"MaturityBucket": ["open", "overnight", "2-7days", "8-30days", "gt_1year"]},
        legal_entities=["LE_001"],
    )

    print("\nFR 2052a Validation")
    print(f"  {'PASSED' if validation.passed else 'FAILED'}: "
          f"{validation.valid_rows} valid rows, {validation.error_rows} rows with errors")
    for error in validation.errors:
        print(f"  [{error.severity.value}] row {error.row_id}: {error.message}")
    for stat in validation.rule_executions:
        print(f"  {stat.rule_name}: {stat.notes}")


if __name__ == "__main__":
    main()
