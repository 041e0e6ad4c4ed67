"""
agency_services.status_workflow -- Role-checked status changes with cascades.

Responsibility:
    The single write path for application, transaction, and commission
    status.  Each change runs the same pipeline:

        1. role gate              -> PermissionDeniedError
        2. scoped read            -> EntityNotFoundError (missing or not visible)
        3. transition table check -> InvalidTransitionError (nothing persisted)
        4. persist the new status (+ completion timestamp bookkeeping)
        5. cascade (best effort, see CascadeDispatcher)
        6. commit, then log ``status_transition``

Architecture position:
    Services -- imperative shell over the pure transition tables in
    ``agency_kernel.domain.workflow`` and visibility rules in
    ``agency_kernel.domain.visibility``.

Invariants enforced:
    - Steps 1-3 always precede any write.
    - ``StatusChangeResult.success`` describes the primary change only; a
      failed cascade is reported in ``result.cascade`` and never undoes the
      primary change.
    - completed_at / payment_completed_at are set when the record enters
      its completed status and cleared when it leaves it.

Failure modes:
    - PermissionDeniedError, EntityNotFoundError, InvalidTransitionError:
      raised before any write.
    - Unexpected store errors while persisting the primary change: rolled
      back (auto_commit) and re-raised.

Audit relevance:
    Every applied change emits one ``status_transition`` record carrying the
    actor, role, entity, from/to status, and cascade action.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy.orm import Session

from agency_config.schema import EngineSettings
from agency_kernel.domain.clock import Clock
from agency_kernel.domain.results import CascadeOutcome, StatusChangeResult
from agency_kernel.domain.roles import Action, Caller
from agency_kernel.domain.status import (
    CommissionStatus,
    EntityKind,
    TransactionStatus,
    status_value,
)
from agency_kernel.domain.workflow import allowed_transitions, is_valid_transition
from agency_kernel.exceptions import InvalidTransitionError
from agency_kernel.logging_config import LogContext, get_logger
from agency_services.base import AgencyService
from agency_services.cascade_dispatcher import CascadeDispatcher
from agency_services.data_store import DataStore

logger = get_logger("services.status_workflow")


class StatusWorkflowService(AgencyService):
    """
    Applies status changes for the three workflow entities.

    Contract:
        Each public method owns its transaction boundary when auto_commit
        is True (the default): commit on success, rollback on failure.

    Non-goals:
        - Does NOT decide which statuses exist; that is the transition
          tables' job.
    """

    def __init__(
        self,
        session: Session,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
        store: DataStore | None = None,
        dispatcher: CascadeDispatcher | None = None,
        auto_commit: bool = True,
    ):
        super().__init__(session, settings, clock, store, auto_commit)
        self._dispatcher = dispatcher or CascadeDispatcher(
            self._store, self._settings, self._clock,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def change_application_status(
        self,
        caller: Caller,
        application_id: str,
        new_status: Enum | str,
    ) -> StatusChangeResult:
        return self._change(
            caller,
            EntityKind.APPLICATION,
            application_id,
            status_value(new_status),
            Action.CHANGE_APPLICATION_STATUS,
        )

    def change_transaction_status(
        self,
        caller: Caller,
        transaction_id: str,
        new_status: Enum | str,
    ) -> StatusChangeResult:
        return self._change(
            caller,
            EntityKind.TRANSACTION,
            transaction_id,
            status_value(new_status),
            Action.CHANGE_TRANSACTION_STATUS,
        )

    def change_commission_status(
        self,
        caller: Caller,
        commission_id: str,
        new_status: Enum | str,
    ) -> StatusChangeResult:
        return self._change(
            caller,
            EntityKind.COMMISSION,
            commission_id,
            status_value(new_status),
            Action.CHANGE_COMMISSION_STATUS,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _change(
        self,
        caller: Caller,
        kind: EntityKind,
        entity_id: str,
        requested: str,
        action: Action,
    ) -> StatusChangeResult:
        with LogContext.bind(actor_id=caller.user_id, entity_kind=kind.value, entity_id=entity_id):
            self._require(caller, action)

            with self._unit_of_work():
                current = self._scoped(caller, kind, entity_id)
                from_status = current.status

                if not is_valid_transition(kind, from_status, requested, caller.is_privileged):
                    allowed = allowed_transitions(kind, from_status, caller.is_privileged)
                    logger.info(
                        "status_transition_rejected",
                        extra={
                            "role": caller.role.value,
                            "from_status": from_status,
                            "to_status": requested,
                            "allowed": allowed,
                        },
                    )
                    raise InvalidTransitionError(
                        kind.value, entity_id, from_status, requested, allowed,
                    )

                record = self._store.update_entity(
                    kind, entity_id, self._status_changes(kind, requested),
                )
                cascade = self._cascade(kind, record, requested)

            result = StatusChangeResult(
                success=True,
                entity_kind=kind,
                entity_id=entity_id,
                from_status=from_status,
                to_status=requested,
                record=record,
                cascade=cascade,
            )
            logger.info(
                "status_transition",
                extra={
                    "role": caller.role.value,
                    "from_status": from_status,
                    "to_status": requested,
                    "cascade_action": cascade.action.value,
                    "cascade_target_id": cascade.target_id,
                    "cascade_failed": cascade.failed,
                },
            )
            return result

    def _status_changes(self, kind: EntityKind, requested: str) -> dict:
        changes: dict = {"status": requested}
        if kind is EntityKind.TRANSACTION:
            changes["completed_at"] = (
                self._clock.now() if requested == TransactionStatus.COMPLETED.value else None
            )
        elif kind is EntityKind.COMMISSION:
            changes["payment_completed_at"] = (
                self._clock.now() if requested == CommissionStatus.COMPLETED.value else None
            )
        return changes

    def _cascade(self, kind: EntityKind, record, requested: str) -> CascadeOutcome:
        if kind is EntityKind.APPLICATION:
            return self._dispatcher.on_application_status_changed(record, requested)
        if kind is EntityKind.TRANSACTION:
            return self._dispatcher.on_transaction_status_changed(record, requested)
        return CascadeOutcome.not_applicable()
