"""
agency_services.commission_service -- Reading commissions and correcting
their amount or notes.

Only top-level agents may touch commission details; sub-agents can see the
commissions paid to them and nothing more.  Counsellors see none.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from agency_kernel.domain.records import Commission
from agency_kernel.domain.roles import Action, Caller
from agency_kernel.domain.status import EntityKind
from agency_kernel.domain.visibility import resolve_scope
from agency_kernel.logging_config import get_logger
from agency_services.base import AgencyService

logger = get_logger("services.commission")


class CommissionService(AgencyService):
    def list_commissions(self, caller: Caller) -> list[Commission]:
        return self._selector.list_commissions(
            resolve_scope(caller, EntityKind.COMMISSION),
        )

    def get_commission(self, caller: Caller, commission_id: str) -> Commission:
        return self._scoped(caller, EntityKind.COMMISSION, commission_id)

    def update_commission(
        self,
        caller: Caller,
        commission_id: str,
        amount: Decimal | None = None,
        notes: str | None = None,
    ) -> Commission:
        """
        Correct a commission's amount and/or notes.

        Raises:
            PermissionDeniedError: caller is not a top-level agent.
            EntityNotFoundError: commission missing or not the caller's.
            TypeError: amount is not a Decimal.
            ValueError: amount is negative.
        """
        self._require(caller, Action.EDIT_COMMISSION)

        changes: dict = {}
        if amount is not None:
            if not isinstance(amount, Decimal):
                raise TypeError(f"amount must be Decimal, got {type(amount).__name__}")
            if amount < 0:
                raise ValueError("amount must not be negative")
            changes["amount"] = amount.quantize(
                self._settings.amount_quantum, rounding=ROUND_HALF_UP,
            )
        if notes is not None:
            changes["notes"] = notes or None

        with self._unit_of_work():
            current = self._scoped(caller, EntityKind.COMMISSION, commission_id)
            if not changes:
                return current
            commission = self._store.update_entity(EntityKind.COMMISSION, commission_id, changes)

        logger.info(
            "commission_updated_manually",
            extra={
                "commission_id": commission_id,
                "actor_id": caller.user_id,
                "previous_amount": current.amount,
                "amount": commission.amount,
            },
        )
        return commission
