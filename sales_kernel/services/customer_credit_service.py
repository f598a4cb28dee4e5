"""
CustomerCreditService -- credit facility mutations and credit reporting.

Responsibility:
    Apply CreditPolicy decisions to customer rows (limit, block flag,
    customer type) and answer the credit questions the sales desk asks:
    how much can this customer still draw, and which customers are close
    to, or over, their limit.

Architecture position:
    Kernel > Services -- imperative shell around
    ``sales_kernel.domain.credit_policy``.  Owns its transaction boundary:
    commits on success, rolls back and re-raises on failure.

Invariants enforced:
    - Mutations lock the customer row (SELECT ... FOR UPDATE) so they
      serialize with order approval, which reads the same row.
    - outstanding_balance is never written here.
    - Switching a customer to CASH zeroes credit_limit and
      payment_terms_days, and is refused while money is owed.

Failure modes:
    - CustomerNotFoundError: unknown customer id.
    - BusinessRuleError / ValidationError: from CreditPolicy.
    - PermissionDeniedError: the optional gate refused the actor.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sales_kernel.domain import credit_policy
from sales_kernel.domain.credit_policy import CreditDecision
from sales_kernel.domain.dtos import CreditAlert, CreditSummary, CustomerInfo
from sales_kernel.domain.enums import (
    CREDIT_ENABLED_TYPES,
    CustomerType,
    OrderStatus,
    PaymentType,
)
from sales_kernel.domain.values import ZERO
from sales_kernel.exceptions import CustomerNotFoundError, ValidationError
from sales_kernel.logging_config import LogContext, get_logger
from sales_kernel.models.customer import Customer
from sales_kernel.models.sales_order import SalesOrder
from sales_kernel.services.permissions import CREDIT_MANAGE, PermissionGate, require

logger = get_logger("services.customer_credit")

DEFAULT_ALERT_THRESHOLD_PCT = Decimal("90")


class CustomerCreditService:
    """
    Credit facility management for customers.

    Transaction boundary: this service commits on success, rolls back on
    failure.  Read-only methods (``get_customer``, ``credit_summary``,
    ``credit_alerts``, ``can_make_credit_purchase``) never commit.
    """

    def __init__(
        self,
        session: Session,
        permission_gate: PermissionGate | None = None,
    ):
        self._session = session
        self._gate = permission_gate

    # =========================================================================
    # Loading
    # =========================================================================

    def _get(self, customer_id: UUID) -> Customer:
        customer = self._session.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFoundError(str(customer_id))
        return customer

    def _lock(self, customer_id: UUID) -> Customer:
        customer = self._session.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if customer is None:
            raise CustomerNotFoundError(str(customer_id))
        return customer

    def get_customer(self, customer_id: UUID) -> CustomerInfo:
        return self._get(customer_id).to_dto()

    # =========================================================================
    # Mutations
    # =========================================================================

    def set_credit_limit(
        self,
        customer_id: UUID,
        new_limit: Decimal,
        actor_id: UUID,
        payment_terms_days: int | None = None,
    ) -> CustomerInfo:
        """
        Change a customer's credit limit (and optionally payment terms).

        Raises:
            BusinessRuleError: cash-only customer, or limit below outstanding.
            ValidationError: negative limit or negative payment terms.
        """
        require(self._gate, actor_id, CREDIT_MANAGE)
        try:
            with LogContext.bind(customer_id=customer_id, actor_id=actor_id):
                customer = self._lock(customer_id)
                previous = customer.credit_limit
                customer.credit_limit = credit_policy.set_limit(customer.to_dto(), new_limit)
                if payment_terms_days is not None:
                    if payment_terms_days < 0:
                        raise ValidationError(
                            "payment_terms_days",
                            f"cannot be negative, got {payment_terms_days}",
                        )
                    customer.payment_terms_days = payment_terms_days
                customer.updated_by_id = actor_id
                self._session.flush()
                result = customer.to_dto()

                self._session.commit()
                logger.info(
                    "credit_limit_updated",
                    extra={
                        "previous_limit": str(previous),
                        "new_limit": str(new_limit),
                    },
                )
                return result
        except Exception:
            self._session.rollback()
            raise

    def set_credit_blocked(
        self,
        customer_id: UUID,
        blocked: bool,
        actor_id: UUID,
    ) -> CustomerInfo:
        """Block or unblock credit purchases for a customer."""
        require(self._gate, actor_id, CREDIT_MANAGE)
        try:
            with LogContext.bind(customer_id=customer_id, actor_id=actor_id):
                customer = self._lock(customer_id)
                customer.credit_blocked = credit_policy.set_blocked(customer.to_dto(), blocked)
                customer.updated_by_id = actor_id
                self._session.flush()
                result = customer.to_dto()

                self._session.commit()
                logger.info("credit_block_updated", extra={"credit_blocked": blocked})
                return result
        except Exception:
            self._session.rollback()
            raise

    def toggle_credit_block(self, customer_id: UUID, actor_id: UUID) -> CustomerInfo:
        """Flip the credit_blocked flag."""
        current = self.get_customer(customer_id)
        return self.set_credit_blocked(customer_id, not current.credit_blocked, actor_id)

    def change_customer_type(
        self,
        customer_id: UUID,
        new_type: CustomerType,
        actor_id: UUID,
    ) -> CustomerInfo:
        """
        Reclassify a customer.

        Moving to CASH removes the credit facility (limit and terms set to 0)
        and is refused while the customer has an outstanding balance.
        """
        require(self._gate, actor_id, CREDIT_MANAGE)
        new_type = CustomerType(new_type)
        try:
            with LogContext.bind(customer_id=customer_id, actor_id=actor_id):
                customer = self._lock(customer_id)
                credit_policy.check_type_change(customer.to_dto(), new_type)
                previous = customer.customer_type
                customer.customer_type = new_type.value
                if new_type == CustomerType.CASH:
                    customer.credit_limit = ZERO
                    customer.payment_terms_days = 0
                customer.updated_by_id = actor_id
                self._session.flush()
                result = customer.to_dto()

                self._session.commit()
                logger.info(
                    "customer_type_changed",
                    extra={"previous_type": previous, "new_type": new_type.value},
                )
                return result
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Queries
    # =========================================================================

    def can_make_credit_purchase(
        self,
        customer_id: UUID,
        amount: Decimal,
    ) -> CreditDecision:
        """CreditPolicy decision for ``amount`` against current balances."""
        return credit_policy.evaluate(self.get_customer(customer_id), amount)

    def pending_credit_orders_total(self, customer_id: UUID) -> Decimal:
        total = self._session.execute(
            select(func.coalesce(func.sum(SalesOrder.total_amount), 0))
            .where(SalesOrder.customer_id == customer_id)
            .where(SalesOrder.payment_type == PaymentType.CREDIT.value)
            .where(SalesOrder.status == OrderStatus.PENDING.value)
        ).scalar_one()
        return Decimal(str(total))

    def credit_summary(self, customer_id: UUID) -> CreditSummary:
        """Limit, balance, availability and pending credit exposure."""
        customer = self.get_customer(customer_id)
        return CreditSummary(
            customer_id=customer.id,
            credit_limit=customer.credit_limit,
            outstanding_balance=customer.outstanding_balance,
            available_credit=credit_policy.available_credit(customer),
            credit_usage_percentage=credit_policy.credit_usage_percentage(customer),
            pending_orders_total=self.pending_credit_orders_total(customer_id),
            payment_terms_days=customer.payment_terms_days,
            is_blocked=customer.credit_blocked,
        )

    def credit_alerts(
        self,
        threshold_pct: Decimal = DEFAULT_ALERT_THRESHOLD_PCT,
    ) -> list[CreditAlert]:
        """
        Active credit customers that are blocked or at/above ``threshold_pct``
        usage, highest usage first.
        """
        rows = self._session.execute(
            select(Customer)
            .where(Customer.is_active.is_(True))
            .where(Customer.customer_type.in_([t.value for t in CREDIT_ENABLED_TYPES]))
        ).scalars().all()

        alerts: list[CreditAlert] = []
        for row in rows:
            customer = row.to_dto()
            usage = credit_policy.credit_usage_percentage(customer)
            if customer.credit_blocked:
                alert_type = "blocked"
            elif usage >= threshold_pct:
                alert_type = "near_limit"
            else:
                continue
            alerts.append(
                CreditAlert(
                    customer_id=customer.id,
                    customer_code=customer.customer_code,
                    name=customer.name,
                    alert_type=alert_type,
                    credit_usage_percentage=usage,
                    available_credit=credit_policy.available_credit(customer),
                )
            )

        alerts.sort(key=lambda a: a.credit_usage_percentage, reverse=True)
        return alerts
