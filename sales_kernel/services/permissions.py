"""
Identity/permission collaborator.

The outer application may supply a ``PermissionGate``; when it does, every
mutating workflow operation asks it before doing any work.  Without a gate
the engine assumes the caller has already authorized the actor.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sales_kernel.exceptions import PermissionDeniedError
from sales_kernel.logging_config import get_logger

logger = get_logger("services.permissions")

SALES_CREATE = "sales.create"
SALES_APPROVE = "sales.approve"
SALES_REJECT = "sales.reject"
SALES_FULFILL = "sales.fulfill"
CREDIT_MANAGE = "credit.manage"


class PermissionGate(Protocol):
    """Boolean gate: may ``actor_id`` exercise ``permission``?"""

    def check(self, actor_id: UUID, permission: str) -> bool:
        ...


def require(gate: PermissionGate | None, actor_id: UUID, permission: str) -> None:
    """Raise PermissionDeniedError if ``gate`` refuses the actor."""
    if gate is None:
        return
    if not gate.check(actor_id, permission):
        logger.warning(
            "permission_denied",
            extra={"actor_id": str(actor_id), "permission": permission},
        )
        raise PermissionDeniedError(str(actor_id), permission)
