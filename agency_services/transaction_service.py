"""
agency_services.transaction_service -- Reading transactions and editing
their free-text notes.

Transactions are created by the cascade dispatcher and change status
through StatusWorkflowService; this service never does either.
"""

from __future__ import annotations

from agency_kernel.domain.records import Transaction
from agency_kernel.domain.roles import Action, Caller
from agency_kernel.domain.status import EntityKind
from agency_kernel.domain.visibility import resolve_scope
from agency_kernel.logging_config import get_logger
from agency_services.base import AgencyService

logger = get_logger("services.transaction")


class TransactionService(AgencyService):
    def list_transactions(self, caller: Caller) -> list[Transaction]:
        return self._selector.list_transactions(
            resolve_scope(caller, EntityKind.TRANSACTION),
        )

    def get_transaction(self, caller: Caller, transaction_id: str) -> Transaction:
        return self._scoped(caller, EntityKind.TRANSACTION, transaction_id)

    def update_transaction_notes(
        self,
        caller: Caller,
        transaction_id: str,
        notes: str | None,
    ) -> Transaction:
        """
        Replace the notes of a transaction (agents only).

        The notes editor submits the whole text, so audit entries written by
        the cascade are kept only if the caller sends them back.
        """
        self._require(caller, Action.EDIT_TRANSACTION)
        with self._unit_of_work():
            self._scoped(caller, EntityKind.TRANSACTION, transaction_id)
            transaction = self._store.update_entity(
                EntityKind.TRANSACTION, transaction_id, {"notes": notes or None},
            )
        logger.info(
            "transaction_notes_updated",
            extra={"transaction_id": transaction_id, "actor_id": caller.user_id},
        )
        return transaction
