"""
Tests for sales_config -- per-tenant order settings from YAML.

Covers:
- packaged default settings
- unknown tenant falls back to default; partial blocks inherit
- malformed files: unknown key, duplicate tenant, missing default, bad types
- OrderSettings validation
"""

from decimal import Decimal
from pathlib import Path

import pytest

from sales_config import get_order_settings
from sales_config.loader import load_tenant_blocks, parse_settings
from sales_kernel.domain.settings import OrderSettings

DEFAULT_BLOCK = """\
tenants:
  default:
    sales_order_require_approval: true
    sales_order_threshold: "1000000.00"
    tax_rate: "0.075"
"""


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    (tmp_path / "default.yaml").write_text(DEFAULT_BLOCK)
    return tmp_path


class TestPackagedDefaults:
    def test_default_tenant(self):
        settings = get_order_settings("default")

        assert settings.require_approval is True
        assert settings.approval_threshold == Decimal("1000000")
        assert settings.tax_rate == Decimal("0.075")

    def test_unknown_tenant_gets_default(self, captured_logs):
        settings = get_order_settings("acme-feeds")

        assert settings == get_order_settings("default")
        record = next(r for r in captured_logs() if r["message"] == "order_settings_loaded")
        assert record["tenant_id"] == "acme-feeds"
        assert record["resolved_tenant"] == "default"


class TestTenantBlocks:
    def test_partial_block_inherits(self, config_dir):
        (config_dir / "acme.yaml").write_text(
            "tenants:\n  acme:\n    sales_order_threshold: 250000\n"
        )

        settings = get_order_settings("acme", config_dir)

        assert settings.approval_threshold == Decimal("250000")
        assert settings.require_approval is True
        assert settings.tax_rate == Decimal("0.075")

    def test_float_tax_rate_stays_exact(self, config_dir):
        (config_dir / "acme.yaml").write_text("tenants:\n  acme:\n    tax_rate: 0.075\n")

        assert get_order_settings("acme", config_dir).tax_rate == Decimal("0.075")

    def test_approval_disabled(self, config_dir):
        (config_dir / "acme.yaml").write_text(
            "tenants:\n  acme:\n    sales_order_require_approval: false\n"
        )

        assert get_order_settings("acme", config_dir).require_approval is False

    def test_empty_file_ignored(self, config_dir):
        (config_dir / "empty.yaml").write_text("")

        assert "default" in load_tenant_blocks(config_dir)


class TestMalformed:
    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_order_settings("default", tmp_path / "nope")

    def test_missing_default(self, tmp_path):
        (tmp_path / "acme.yaml").write_text("tenants:\n  acme:\n    tax_rate: 0.1\n")

        with pytest.raises(ValueError, match="default"):
            load_tenant_blocks(tmp_path)

    def test_duplicate_tenant(self, config_dir):
        (config_dir / "other.yaml").write_text("tenants:\n  default:\n    tax_rate: 0.1\n")

        with pytest.raises(ValueError, match="defined in both"):
            load_tenant_blocks(config_dir)

    def test_unknown_key(self, config_dir):
        (config_dir / "acme.yaml").write_text(
            "tenants:\n  acme:\n    sales_order_treshold: 10\n"
        )

        with pytest.raises(ValueError, match="unknown keys"):
            load_tenant_blocks(config_dir)

    def test_require_approval_must_be_bool(self):
        with pytest.raises(ValueError):
            parse_settings({"sales_order_require_approval": "yes"})

    @pytest.mark.parametrize("value", ["lots", True])
    def test_threshold_must_be_number(self, value):
        with pytest.raises(ValueError):
            parse_settings({"sales_order_threshold": value})

    def test_tax_rate_out_of_range(self):
        with pytest.raises(ValueError):
            parse_settings({"tax_rate": "1.5"})


class TestOrderSettings:
    def test_meets_threshold_is_inclusive(self):
        settings = OrderSettings(approval_threshold=Decimal("1000000"))

        assert settings.meets_threshold(Decimal("1000000.00"))
        assert not settings.meets_threshold(Decimal("999999.99"))

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            OrderSettings(approval_threshold=Decimal("-1"))

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            OrderSettings(tax_rate=0.075)
