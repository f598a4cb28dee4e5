"""
FormulaService -- loading formulas and recording their use.

Responsibility:
    Load Formula rows as FormulaInfo DTOs, list the formulas a customer may
    order from, preview the lines a formula would produce, and bump the
    usage counters when an order is created from one.

Architecture position:
    Kernel > Services -- flush-only.  ``record_usage`` runs inside the
    order-creation transaction owned by OrderWorkflowService.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select

from sales_kernel.domain import formula_resolver
from sales_kernel.domain.dtos import FormulaInfo, ResolvedLine
from sales_kernel.exceptions import FormulaNotFoundError
from sales_kernel.logging_config import get_logger
from sales_kernel.models.formula import Formula
from sales_kernel.services.base import BaseService
from sales_kernel.services.product_catalog import ProductCatalog, SqlProductCatalog

logger = get_logger("services.formula")


class FormulaService(BaseService):
    """Formula lookups and usage tracking."""

    def __init__(self, session, catalog: ProductCatalog | None = None):
        super().__init__(session)
        self._catalog = catalog or SqlProductCatalog(session)

    def _get(self, formula_id: UUID) -> Formula:
        formula = self.session.get(Formula, formula_id)
        if formula is None:
            raise FormulaNotFoundError(str(formula_id))
        return formula

    def get_formula(self, formula_id: UUID) -> FormulaInfo:
        return self._get(formula_id).to_dto()

    def available_for_customer(self, customer_id: UUID) -> list[FormulaInfo]:
        """Active formulas that are general or reserved for ``customer_id``."""
        rows = self.session.execute(
            select(Formula)
            .where(Formula.is_active.is_(True))
            .where(or_(Formula.customer_id.is_(None), Formula.customer_id == customer_id))
            .order_by(Formula.formula_code)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def preview_requirements(
        self,
        formula_id: UUID,
        customer_id: UUID,
        total_quantity: Decimal,
    ) -> list[ResolvedLine]:
        """The lines an order for ``total_quantity`` would contain, at current prices."""
        return formula_resolver.resolve(
            self.get_formula(formula_id),
            customer_id,
            total_quantity,
            self._catalog.selling_price,
        )

    def record_usage(self, formula_id: UUID, used_at: datetime, actor_id: UUID) -> None:
        """Increment usage_count and stamp last_used_at."""
        formula = self._get(formula_id)
        formula.usage_count += 1
        formula.last_used_at = used_at
        formula.updated_by_id = actor_id
        self.session.flush()
        logger.debug(
            "formula_usage_recorded",
            extra={"formula_id": str(formula_id), "usage_count": formula.usage_count},
        )
