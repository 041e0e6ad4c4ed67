"""
agency_services.data_store -- Record-level persistence port and its
SQLAlchemy adapter.

Responsibility:
    Define the narrow read/write surface the workflow engine needs from the
    store (``DataStore``) and implement it over a SQLAlchemy ``Session``
    (``SqlAlchemyDataStore``).  Everything crossing this boundary is a
    frozen record from ``agency_kernel.domain.records``; ORM rows never
    leak out.

Architecture position:
    Services -- imperative shell.  Depends on ``agency_kernel.models`` and
    ``agency_kernel.exceptions``.  Higher services depend only on the
    ``DataStore`` protocol so tests can substitute a failing store.

Invariants enforced:
    - Flush-only: the adapter never commits or rolls back the outer
      transaction.  The caller (StatusWorkflowService with auto_commit, or
      the caller's ``session_scope``) owns the boundary.
    - Every insert runs in its own SAVEPOINT, so a unique-key collision
      leaves the session usable and is reported as ``DuplicateEntityError``.
    - Field names are checked against the mapped columns; an unknown name
      raises ``ValueError`` instead of being silently dropped.

Failure modes:
    - ``EntityNotFoundError`` from update_entity on a missing id.
    - ``DuplicateEntityError`` from insert_entity on a unique-key collision.
    - ``ValueError`` on unknown entity kinds or field names.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agency_kernel.domain.status import EntityKind
from agency_kernel.exceptions import DuplicateEntityError, EntityNotFoundError
from agency_kernel.logging_config import get_logger
from agency_kernel.models import MODEL_REGISTRY

logger = get_logger("services.data_store")


class DataStore(Protocol):
    """Read/write operations the workflow engine performs on the store."""

    def read_entity(self, kind: EntityKind, entity_id: str) -> Any | None: ...

    def find_by_key(
        self,
        kind: EntityKind,
        key_field: str,
        value: str,
        *,
        case_insensitive: bool = False,
    ) -> Any | None: ...

    def list_entities(self, kind: EntityKind, filter_field: str, value: Any) -> list[Any]: ...

    def insert_entity(self, kind: EntityKind, values: dict[str, Any]) -> Any: ...

    def update_entity(self, kind: EntityKind, entity_id: str, changes: dict[str, Any]) -> Any: ...

    def count_entities(self, kind: EntityKind, filter_field: str, value: Any) -> int: ...

    def delete_entity(self, kind: EntityKind, entity_id: str) -> bool: ...

    def savepoint(self) -> Any: ...


class SqlAlchemyDataStore:
    """
    DataStore over a SQLAlchemy session.

    Contract:
        Receives a session from the caller and only ever flushes it.

    Guarantees:
        - Returned values are frozen records (``to_dto()``).
        - insert_entity is atomic with respect to constraint failures.
    """

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _model(self, kind: EntityKind):
        try:
            return MODEL_REGISTRY[EntityKind(kind)]
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Unknown entity kind: {kind!r}") from exc

    def _column(self, model, field_name: str):
        if field_name not in model.__table__.columns:
            raise ValueError(f"{model.__tablename__} has no field {field_name!r}")
        return getattr(model, field_name)

    def _check_fields(self, model, values: dict[str, Any]) -> None:
        for field_name in values:
            self._column(model, field_name)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_entity(self, kind: EntityKind, entity_id: str) -> Any | None:
        row = self.session.get(self._model(kind), entity_id)
        return row.to_dto() if row is not None else None

    def find_by_key(
        self,
        kind: EntityKind,
        key_field: str,
        value: str,
        *,
        case_insensitive: bool = False,
    ) -> Any | None:
        """Return the first record whose ``key_field`` equals ``value``."""
        if value is None:
            return None
        model = self._model(kind)
        column = self._column(model, key_field)
        if case_insensitive:
            condition = func.lower(column) == str(value).lower()
        else:
            condition = column == value
        row = self.session.execute(
            select(model).where(condition).order_by(model.created_at).limit(1)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def list_entities(self, kind: EntityKind, filter_field: str, value: Any) -> list[Any]:
        model = self._model(kind)
        column = self._column(model, filter_field)
        rows = self.session.execute(
            select(model).where(column == value).order_by(model.created_at)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def count_entities(self, kind: EntityKind, filter_field: str, value: Any) -> int:
        model = self._model(kind)
        column = self._column(model, filter_field)
        return self.session.execute(
            select(func.count()).select_from(model).where(column == value)
        ).scalar_one()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_entity(self, kind: EntityKind, values: dict[str, Any]) -> Any:
        """
        Insert a record and flush.

        Raises:
            DuplicateEntityError: a unique constraint rejected the row.
            ValueError: a field name is not a column of the kind's table.
        """
        model = self._model(kind)
        self._check_fields(model, values)
        row = model(**values)
        try:
            with self.session.begin_nested():
                self.session.add(row)
                self.session.flush()
        except IntegrityError as exc:
            logger.info(
                "insert_rejected",
                extra={"kind": EntityKind(kind).value, "error": str(exc.orig)},
            )
            raise DuplicateEntityError(EntityKind(kind).value, str(exc.orig)) from exc
        return row.to_dto()

    def update_entity(self, kind: EntityKind, entity_id: str, changes: dict[str, Any]) -> Any:
        """
        Apply ``changes`` to one record and flush.

        Raises:
            EntityNotFoundError: no record with that id.
            ValueError: a field is unknown or is the primary key.
        """
        model = self._model(kind)
        self._check_fields(model, changes)
        for column in model.__table__.primary_key.columns:
            if column.name in changes:
                raise ValueError(f"Primary key {column.name!r} cannot be changed")
        row = self.session.get(model, entity_id)
        if row is None:
            raise EntityNotFoundError(EntityKind(kind).value, entity_id)
        for field_name, value in changes.items():
            setattr(row, field_name, value)
        self.session.flush()
        return row.to_dto()

    def delete_entity(self, kind: EntityKind, entity_id: str) -> bool:
        model = self._model(kind)
        row = self.session.get(model, entity_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """Run a block in a SAVEPOINT; an exception rolls back only the block."""
        with self.session.begin_nested():
            yield
