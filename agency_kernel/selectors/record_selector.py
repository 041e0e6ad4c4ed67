"""
Module: agency_kernel.selectors.record_selector
Responsibility: Scoped read access to applications, transactions, and
    commissions.  Translates a VisibilityScope into SQL so that list and
    lookup queries only ever return rows the caller may see.
Architecture position: Kernel > Selectors.  May import from models/,
    selectors/base.py, and domain/visibility.py.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - A denied scope returns nothing without touching the database.
    - Lists are ordered newest first (created_at DESC, id DESC).

Failure modes:
    - Returns None or an empty list when nothing matches (never raises on
      absence of data).
    - ValueError for entity kinds outside the workflow.
"""

from typing import Any

from sqlalchemy import and_, exists, false, or_, select

from agency_kernel.domain.records import Application, Commission, Transaction
from agency_kernel.domain.status import WORKFLOW_KINDS, EntityKind
from agency_kernel.domain.visibility import Clause, VisibilityScope
from agency_kernel.models import MODEL_REGISTRY, ApplicationModel
from agency_kernel.selectors.base import BaseSelector


class RecordSelector(BaseSelector):
    """
    Selector for ownership-scoped workflow records.

    Guarantees:
        - Every query is filtered by the scope passed in.
        - via_application clauses become an EXISTS against applications
          joined on the record's application_id.
    """

    def _model(self, kind: EntityKind):
        if kind not in WORKFLOW_KINDS:
            raise ValueError(f"{kind} is not a scoped record kind")
        return MODEL_REGISTRY[kind]

    def _clause_sql(self, model, clause: Clause):
        parts = [getattr(model, field_name) == value for field_name, value in clause.conditions]
        if clause.via_application:
            parts.append(
                exists().where(
                    ApplicationModel.id == model.application_id,
                    *(
                        getattr(ApplicationModel, field_name) == value
                        for field_name, value in clause.via_application
                    ),
                )
            )
        return and_(*parts)

    def scope_filter(self, scope: VisibilityScope):
        """Build the WHERE expression for a scope."""
        model = self._model(scope.entity_kind)
        if scope.is_denied:
            return false()
        return or_(*(self._clause_sql(model, clause) for clause in scope.any_of))

    def _list(self, scope: VisibilityScope) -> list[Any]:
        if scope.is_denied:
            return []
        model = self._model(scope.entity_kind)
        rows = self.session.execute(
            select(model)
            .where(self.scope_filter(scope))
            .order_by(model.created_at.desc(), model.id.desc())
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def list_applications(self, scope: VisibilityScope) -> list[Application]:
        return self._list(scope)

    def list_transactions(self, scope: VisibilityScope) -> list[Transaction]:
        return self._list(scope)

    def list_commissions(self, scope: VisibilityScope) -> list[Commission]:
        return self._list(scope)

    def get_scoped(
        self,
        kind: EntityKind,
        entity_id: str,
        scope: VisibilityScope,
    ) -> Application | Transaction | Commission | None:
        """
        Fetch one record by id, only if the scope allows it.

        Args:
            kind: Workflow entity kind; must equal scope.entity_kind.
            entity_id: Record id.
            scope: Caller's visibility scope for kind.

        Returns:
            The record, or None if it does not exist or is not visible.
        """
        if kind is not scope.entity_kind:
            raise ValueError(f"scope is for {scope.entity_kind}, not {kind}")
        if scope.is_denied:
            return None
        model = self._model(kind)
        row = self.session.execute(
            select(model).where(model.id == entity_id, self.scope_filter(scope))
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None
