"""
agency_services.cascade_dispatcher -- Financial side effects of status changes.

Responsibility:
    After a status change has been validated and persisted, derive the
    dependent financial record:

    * Application -> Completed: ensure exactly one transaction exists for
      the application, carrying the course's first-year fee.
    * Transaction -> Completed (with a sub-agent): ensure exactly one
      commission exists for the transaction at the configured rate.

Architecture position:
    Services -- imperative shell.  Called by StatusWorkflowService only.
    Depends on the DataStore port, CatalogResolver, EngineSettings, and an
    injected Clock.

Invariants enforced:
    - Idempotent upsert: repeated completion updates the existing record's
      amount and appends a timestamped note; it never inserts a second row
      and never changes the dependent record's status.
    - Race safety: inserts run in a SAVEPOINT against a unique key
      (application_id / transaction_id).  A concurrent insert surfaces as
      DuplicateEntityError and falls back to the update path.
    - Best effort: every cascade runs in its own SAVEPOINT.  Any failure
      rolls back only the cascade's writes, is logged with its traceback,
      and is returned as CascadeOutcome(action=FAILED).  It is never
      raised to the caller; the primary status change stands.
    - Money: amounts are Decimal, quantised to ``amount_quantum`` with
      ROUND_HALF_UP.

Failure modes:
    - Unresolvable course or missing first-year fee: amount 0, WARNING log,
      transaction still created.
    - Transaction without sub-agent: CascadeOutcome(action=SKIPPED), no
      commission.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable

from agency_config import get_active_config
from agency_config.schema import EngineSettings
from agency_kernel.domain.clock import Clock, SystemClock
from agency_kernel.domain.notes import append_note
from agency_kernel.domain.records import Application, Commission, Course, Transaction
from agency_kernel.domain.results import CascadeAction, CascadeFailure, CascadeOutcome
from agency_kernel.domain.status import (
    ApplicationStatus,
    CommissionStatus,
    EntityKind,
    TransactionStatus,
    status_value,
)
from agency_kernel.exceptions import CascadeFailureError, DuplicateEntityError
from agency_kernel.logging_config import get_logger
from agency_services.catalog import CatalogResolver
from agency_services.data_store import DataStore

logger = get_logger("services.cascade")


class CascadeDispatcher:
    """
    Applies the dependent-record rules for completed applications and
    transactions.

    Contract:
        Both entry points accept the record AFTER its status was persisted
        and return a CascadeOutcome.  Neither raises.
    """

    def __init__(
        self,
        store: DataStore,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._settings = settings if settings is not None else get_active_config()
        self._clock = clock or SystemClock()
        self._catalog = CatalogResolver(store)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def on_application_status_changed(
        self,
        application: Application,
        new_status: ApplicationStatus | str,
    ) -> CascadeOutcome:
        if status_value(new_status) != ApplicationStatus.COMPLETED.value:
            return CascadeOutcome.not_applicable()
        return self._run(
            EntityKind.APPLICATION,
            application.id,
            lambda: self._ensure_transaction(application),
        )

    def on_transaction_status_changed(
        self,
        transaction: Transaction,
        new_status: TransactionStatus | str,
    ) -> CascadeOutcome:
        if status_value(new_status) != TransactionStatus.COMPLETED.value:
            return CascadeOutcome.not_applicable()
        if not transaction.subagent_id:
            logger.info(
                "commission_skipped",
                extra={"transaction_id": transaction.id, "reason": "no_subagent"},
            )
            return CascadeOutcome(
                action=CascadeAction.SKIPPED,
                target_kind=EntityKind.COMMISSION,
                reason="transaction has no sub-agent",
            )
        return self._run(
            EntityKind.TRANSACTION,
            transaction.id,
            lambda: self._ensure_commission(transaction),
        )

    # ------------------------------------------------------------------
    # Failure isolation
    # ------------------------------------------------------------------

    def _run(
        self,
        source_kind: EntityKind,
        source_id: str,
        work: Callable[[], CascadeOutcome],
    ) -> CascadeOutcome:
        try:
            try:
                with self._store.savepoint():
                    return work()
            except Exception as exc:
                raise CascadeFailureError(
                    source_kind.value, source_id, f"{type(exc).__name__}: {exc}",
                ) from exc
        except CascadeFailureError as error:
            logger.error(
                "cascade_failed",
                exc_info=True,
                extra={"source_kind": source_kind.value, "source_id": source_id},
            )
            return CascadeOutcome(
                action=CascadeAction.FAILED,
                reason=error.reason,
                failure=CascadeFailure(
                    code=error.code,
                    message=str(error),
                    source_kind=source_kind,
                    source_id=source_id,
                ),
            )

    # ------------------------------------------------------------------
    # Application -> Transaction
    # ------------------------------------------------------------------

    def _quantize(self, amount: Decimal) -> Decimal:
        return amount.quantize(self._settings.amount_quantum, rounding=ROUND_HALF_UP)

    def _first_year_fee(self, application: Application, course: Course | None) -> Decimal:
        fee = None
        if course is not None:
            try:
                fee = course.first_year_fee
            except (InvalidOperation, ValueError):
                fee = None
        if fee is None or not fee.is_finite() or fee < 0:
            logger.warning(
                "course_fee_unresolved",
                extra={
                    "application_id": application.id,
                    "preferred_course": application.preferred_course,
                    "course_id": course.id if course is not None else None,
                },
            )
            return self._quantize(Decimal("0"))
        return self._quantize(fee)

    def _describe(self, application: Application, course: Course | None) -> str:
        course_name = course.course_name if course is not None else application.preferred_course
        college = self._catalog.resolve_college(application.preferred_college)
        college_name = college.name if college is not None else application.preferred_college
        if course_name and college_name:
            return f"First year fee: {course_name} at {college_name}"
        return f"First year fee: {course_name or college_name or 'unknown course'}"

    def _ensure_transaction(self, application: Application) -> CascadeOutcome:
        course = self._catalog.resolve_course(application.preferred_course)
        amount = self._first_year_fee(application, course)
        now = self._clock.now()

        existing = self._store.find_by_key(EntityKind.TRANSACTION, "application_id", application.id)
        if existing is not None:
            return self._update_transaction(existing, application, amount, now)

        description = self._describe(application, course)
        note = self._settings.transaction_created_note.format(
            application_id=application.id, amount=amount, description=description,
        )
        values = {
            "application_id": application.id,
            "student_name": application.student_name,
            "amount": amount,
            "status": TransactionStatus.PENDING.value,
            "agent_id": application.superagent_id,
            "subagent_id": application.subagent_id,
            "description": description,
            "notes": append_note(None, note, now),
        }
        try:
            created = self._store.insert_entity(EntityKind.TRANSACTION, values)
        except DuplicateEntityError:
            existing = self._store.find_by_key(
                EntityKind.TRANSACTION, "application_id", application.id,
            )
            if existing is None:
                raise
            logger.info("transaction_insert_lost_race", extra={"application_id": application.id})
            return self._update_transaction(existing, application, amount, now)

        logger.info(
            "transaction_created",
            extra={
                "application_id": application.id,
                "transaction_id": created.id,
                "amount": amount,
                "subagent_id": application.subagent_id,
            },
        )
        return CascadeOutcome(
            action=CascadeAction.CREATED,
            target_kind=EntityKind.TRANSACTION,
            target_id=created.id,
            amount=amount,
        )

    def _update_transaction(
        self,
        existing: Transaction,
        application: Application,
        amount: Decimal,
        now: datetime,
    ) -> CascadeOutcome:
        note = self._settings.transaction_updated_note.format(
            application_id=application.id,
            amount=amount,
            previous_amount=existing.amount,
        )
        updated = self._store.update_entity(
            EntityKind.TRANSACTION,
            existing.id,
            {"amount": amount, "notes": append_note(existing.notes, note, now)},
        )
        logger.info(
            "transaction_updated",
            extra={
                "application_id": application.id,
                "transaction_id": updated.id,
                "amount": amount,
                "previous_amount": existing.amount,
            },
        )
        return CascadeOutcome(
            action=CascadeAction.UPDATED,
            target_kind=EntityKind.TRANSACTION,
            target_id=updated.id,
            amount=amount,
        )

    # ------------------------------------------------------------------
    # Transaction -> Commission
    # ------------------------------------------------------------------

    def _ensure_commission(self, transaction: Transaction) -> CascadeOutcome:
        rate = self._settings.commission_rate
        amount = self._quantize(Decimal(transaction.amount) * rate)
        now = self._clock.now()

        existing = self._store.find_by_key(EntityKind.COMMISSION, "transaction_id", transaction.id)
        if existing is not None:
            return self._update_commission(existing, transaction, amount, now)

        note = self._settings.commission_created_note.format(
            transaction_id=transaction.id, amount=amount, rate=rate,
        )
        values = {
            "application_id": transaction.application_id,
            "transaction_id": transaction.id,
            "amount": amount,
            "status": CommissionStatus.PENDING.value,
            "agent_id": transaction.agent_id,
            "subagent_id": transaction.subagent_id,
            "notes": append_note(None, note, now),
        }
        try:
            created = self._store.insert_entity(EntityKind.COMMISSION, values)
        except DuplicateEntityError:
            existing = self._store.find_by_key(
                EntityKind.COMMISSION, "transaction_id", transaction.id,
            )
            if existing is None:
                raise
            logger.info("commission_insert_lost_race", extra={"transaction_id": transaction.id})
            return self._update_commission(existing, transaction, amount, now)

        logger.info(
            "commission_created",
            extra={
                "transaction_id": transaction.id,
                "commission_id": created.id,
                "amount": amount,
                "rate": rate,
                "subagent_id": transaction.subagent_id,
            },
        )
        return CascadeOutcome(
            action=CascadeAction.CREATED,
            target_kind=EntityKind.COMMISSION,
            target_id=created.id,
            amount=amount,
        )

    def _update_commission(
        self,
        existing: Commission,
        transaction: Transaction,
        amount: Decimal,
        now: datetime,
    ) -> CascadeOutcome:
        note = self._settings.commission_updated_note.format(
            transaction_id=transaction.id,
            amount=amount,
            previous_amount=existing.amount,
            rate=self._settings.commission_rate,
        )
        updated = self._store.update_entity(
            EntityKind.COMMISSION,
            existing.id,
            {"amount": amount, "notes": append_note(existing.notes, note, now)},
        )
        logger.info(
            "commission_updated",
            extra={
                "transaction_id": transaction.id,
                "commission_id": updated.id,
                "amount": amount,
                "previous_amount": existing.amount,
            },
        )
        return CascadeOutcome(
            action=CascadeAction.UPDATED,
            target_kind=EntityKind.COMMISSION,
            target_id=updated.id,
            amount=amount,
        )
