"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing numbers for named sequences.  The order
    workflow uses one sequence per calendar year (``sales_order:2026``)
    and formats the value as ``SO-2026-00001``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by OrderWorkflowService as the last step before an order row
    is inserted, so the counter row stays locked only briefly.

Invariants enforced:
    - Monotonicity: the locked counter row is the sole source of truth
      for the next value; MAX(order_number)+1 is never used.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from sales_kernel.logging_config import get_logger
from sales_kernel.models.sequence import SequenceCounter
from sales_kernel.services.base import BaseService

logger = get_logger("services.sequence")

ORDER_NUMBER_PREFIX = "SO"


def order_sequence_name(year: int) -> str:
    return f"sales_order:{year}"


def format_order_number(year: int, value: int) -> str:
    """``SO-YYYY-NNNNN``; widens past five digits rather than wrapping."""
    return f"{ORDER_NUMBER_PREFIX}-{year}-{value:05d}"


class SequenceService(BaseService):
    """
    Service for generating transactional sequence numbers.

    Usage:
        number = SequenceService(session).next_order_number(2026)
        # "SO-2026-00001"; rolled back with the caller's transaction
    """

    def _lock_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self.session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Locks the counter row (creating it on first use), increments it,
        and returns the new value.  The first value of a sequence is 1.
        """
        counter = self._lock_counter(sequence_name)

        if counter is None:
            # First use: another transaction may create the row at the same
            # time, so insert under a savepoint and fall back to the lock.
            savepoint = self.session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self.session.add(counter)
                self.session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._lock_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self.session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing, or None."""
        counter = self.session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def next_order_number(self, year: int) -> str:
        """Allocate the next ``SO-YYYY-NNNNN`` number for ``year``."""
        return format_order_number(year, self.next_value(order_sequence_name(year)))
