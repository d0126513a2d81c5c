"""Tests for Liquidity Engine configuration."""

import pytest
import yaml
from pydantic import ValidationError

from liquidity_engine.core.config import LiquidityConfig


class TestLiquidityConfig:
    """Test configuration loading and persistence."""

    def test_packaged_yaml_matches_defaults(self, test_config):
        assert test_config.model_dump() == LiquidityConfig().model_dump()

    def test_save_and_load_round_trip(self, temp_dir):
        config = LiquidityConfig()
        config.lcr.outflows.retail_stable = 0.05
        config.nsfr.rsf.retail_loan_sub_products.append("auto")

        path = temp_dir / "liquidity.yaml"
        config.save_to_file(path)
        loaded = LiquidityConfig.load_from_file(path)

        assert loaded.lcr.outflows.retail_stable == 0.05
        assert "auto" in loaded.nsfr.rsf.retail_loan_sub_products
        assert loaded.model_dump() == config.model_dump()

    def test_partial_file_keeps_other_defaults(self, temp_dir):
        path = temp_dir / "partial.yaml"
        path.write_text(yaml.safe_dump({"lcr": {"outflow_floor": 0.3}}))

        config = LiquidityConfig.load_from_file(path)
        assert config.lcr.outflow_floor == 0.3
        assert config.lcr.inflows.inflow_cap == 0.75
        assert config.nsfr.minimum_ratio == 1.0

    def test_empty_file_gives_defaults(self, temp_dir):
        path = temp_dir / "empty.yaml"
        path.write_text("")
        assert LiquidityConfig.load_from_file(path).model_dump() == LiquidityConfig().model_dump()

    def test_invalid_file_rejected(self, temp_dir):
        path = temp_dir / "invalid.yaml"
        path.write_text(yaml.safe_dump({"lcr": {"hqla": {"level_2a_cap": {"numerator": 2, "denominator": 0}}}}))
        with pytest.raises(ValidationError):
            LiquidityConfig.load_from_file(path)

    def test_cap_values(self):
        hqla = LiquidityConfig().lcr.hqla
        assert hqla.level_2a_cap.value == pytest.approx(2 / 3)
        assert hqla.level_2b_cap.value == pytest.approx(15 / 85)

    @pytest.mark.parametrize("bucket,days", [
        ("overnight", 1),
        ("2-7days", 5),
        ("8-30days", 20),
        ("31-90days", 60),
        ("91-180days", 135),
        ("181-365days", 270),
        ("gt_1year", 730),
        ("open", 9999),
        ("unknown", 0),
    ])
    def test_maturity_days(self, bucket, days):
        assert LiquidityConfig().get_maturity_days(bucket) == days

    def test_field_aliases(self):
        config = LiquidityConfig()
        assert config.field_for("MaturityBucket") == "maturity_bucket"
        assert config.field_for("ReportingEntity") == "legal_entity_id"
        assert config.field_for("Product") == "product"
        assert config.field_for("Segment") == "segment"
        assert config.field_for(None) is None
