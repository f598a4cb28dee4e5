"""
sales_config -- single public entrypoint for order settings.

Responsibility:
    ``get_order_settings(tenant_id)`` is the only way the outer application
    obtains the ``OrderSettings`` it passes into OrderWorkflowService.  The
    kernel never reads configuration itself.

Architecture position:
    Configuration -- sits above ``sales_kernel``.  The kernel MUST NEVER
    import from ``sales_config``.

Failure modes:
    - ``FileNotFoundError`` -- the settings directory does not exist.
    - ``ValueError`` -- malformed settings, or no ``default`` tenant.

Audit relevance:
    Every call logs ``order_settings_loaded`` with the tenant actually
    resolved, so an order's approval outcome can be tied to the settings
    in force.
"""

from __future__ import annotations

from pathlib import Path

from sales_config.loader import DEFAULT_TENANT, load_tenant_blocks, parse_settings
from sales_kernel.domain.settings import OrderSettings
from sales_kernel.logging_config import get_logger

logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_order_settings(tenant_id: str, config_dir: Path | None = None) -> OrderSettings:
    """
    Settings for ``tenant_id``.

    Unknown tenants get the ``default`` block.  A tenant block that sets
    only some keys inherits the rest from ``default``.

    Args:
        tenant_id: Tenant identifier.
        config_dir: Override path to the settings directory.
            Defaults to sales_config/sets/.
    """
    blocks = load_tenant_blocks(config_dir or _DEFAULT_CONFIG_DIR)
    default = parse_settings(blocks[DEFAULT_TENANT])

    resolved = tenant_id if tenant_id in blocks else DEFAULT_TENANT
    settings = default if resolved == DEFAULT_TENANT else parse_settings(blocks[resolved], default)

    logger.info(
        "order_settings_loaded",
        extra={
            "tenant_id": tenant_id,
            "resolved_tenant": resolved,
            "require_approval": settings.require_approval,
            "approval_threshold": str(settings.approval_threshold),
            "tax_rate": str(settings.tax_rate),
        },
    )
    return settings


__all__ = ["OrderSettings", "get_order_settings"]
