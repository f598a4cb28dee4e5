"""
BaseService -- abstract base for kernel helper services.

Responsibility:
    Provides the common constructor and session-handling contract for
    the collaborator services (sequence allocation, stock, catalog) that
    run inside a transaction owned by someone else.  They receive a
    SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: helper services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (OrderWorkflowService, CustomerCreditService, FormulaService, or a
      test harness) owns commit/rollback.

Failure modes:
    - If a subclass calls ``session.commit()``, a failed order creation
      could leave a reserved stock row or a consumed order number behind.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for flush-only services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``sales_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session
