"""
Settings loader (``sales_config.loader``).

Responsibility
--------------
Reads the ``tenants`` blocks of every YAML file in a settings directory and
turns them into ``OrderSettings``.  Internal to ``sales_config``; callers
use ``sales_config.get_order_settings()``.

Failure modes
-------------
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type, or a tenant defined in two files -> ``ValueError``.
* No ``default`` tenant anywhere -> ``ValueError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from sales_kernel.domain.settings import OrderSettings

DEFAULT_TENANT = "default"

_KEY_REQUIRE_APPROVAL = "sales_order_require_approval"
_KEY_THRESHOLD = "sales_order_threshold"
_KEY_TAX_RATE = "tax_rate"
_KNOWN_KEYS = frozenset({_KEY_REQUIRE_APPROVAL, _KEY_THRESHOLD, _KEY_TAX_RATE})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def load_tenant_blocks(config_dir: Path) -> dict[str, dict[str, Any]]:
    """Merge the ``tenants`` mappings of every ``*.yaml`` file in ``config_dir``."""
    if not config_dir.is_dir():
        raise FileNotFoundError(f"Settings directory not found: {config_dir}")

    blocks: dict[str, dict[str, Any]] = {}
    sources: dict[str, Path] = {}
    for path in sorted(config_dir.glob("*.yaml")):
        tenants = load_yaml_file(path).get("tenants") or {}
        if not isinstance(tenants, dict):
            raise ValueError(f"{path}: 'tenants' must be a mapping")
        for tenant_id, block in tenants.items():
            tenant_id = str(tenant_id)
            if tenant_id in blocks:
                raise ValueError(
                    f"Tenant '{tenant_id}' defined in both {sources[tenant_id]} and {path}"
                )
            if not isinstance(block, dict):
                raise ValueError(f"{path}: tenant '{tenant_id}' must be a mapping")
            unknown = set(block) - _KNOWN_KEYS
            if unknown:
                raise ValueError(
                    f"{path}: tenant '{tenant_id}' has unknown keys: {sorted(unknown)}"
                )
            blocks[tenant_id] = block
            sources[tenant_id] = path

    if DEFAULT_TENANT not in blocks:
        raise ValueError(f"No '{DEFAULT_TENANT}' tenant in {config_dir}")
    return blocks


def parse_settings(block: dict[str, Any], base: OrderSettings | None = None) -> OrderSettings:
    """Build OrderSettings from one tenant block, filling gaps from ``base``."""
    base = base or OrderSettings()

    require_approval = block.get(_KEY_REQUIRE_APPROVAL, base.require_approval)
    if not isinstance(require_approval, bool):
        raise ValueError(
            f"{_KEY_REQUIRE_APPROVAL} must be true or false, got {require_approval!r}"
        )

    return OrderSettings(
        require_approval=require_approval,
        approval_threshold=_parse_decimal(
            block.get(_KEY_THRESHOLD, base.approval_threshold), _KEY_THRESHOLD
        ),
        tax_rate=_parse_decimal(block.get(_KEY_TAX_RATE, base.tax_rate), _KEY_TAX_RATE),
    )


def _parse_decimal(value: Any, key: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        # YAML floats go through str() so 0.075 stays 0.075
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{key} must be a number, got {value!r}") from exc
