"""
agency_services.base -- Common plumbing for the agency services.

Responsibility:
    Holds the session, data store, selector, settings, and clock every
    service needs, and owns the transaction boundary of a public method
    (commit on success, rollback on failure) when ``auto_commit`` is set.

Architecture position:
    Services -- imperative shell.  Concrete services extend AgencyService.

Invariants enforced:
    - With auto_commit=True each public method is one unit of work.
    - With auto_commit=False the service only flushes and the caller owns
      commit/rollback (e.g. inside ``session_scope()``).
    - Role checks run before any read or write.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from agency_config import get_active_config
from agency_config.schema import EngineSettings
from agency_kernel.domain.clock import Clock, SystemClock
from agency_kernel.domain.roles import Action, Caller
from agency_kernel.domain.status import EntityKind
from agency_kernel.domain.visibility import resolve_scope
from agency_kernel.exceptions import EntityNotFoundError, PermissionDeniedError
from agency_kernel.logging_config import get_logger
from agency_kernel.selectors import RecordSelector
from agency_services.data_store import DataStore, SqlAlchemyDataStore

logger = get_logger("services")


class AgencyService:
    """
    Base class for the agency services.

    Contract:
        Callers supply a live SQLAlchemy Session and, optionally, settings
        (defaults to ``get_active_config()``), a Clock, and a DataStore
        (defaults to SqlAlchemyDataStore over the same session).
    """

    def __init__(
        self,
        session: Session,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
        store: DataStore | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._settings = settings if settings is not None else get_active_config()
        self._clock = clock or SystemClock()
        self._store = store or SqlAlchemyDataStore(session)
        self._selector = RecordSelector(session)
        self._auto_commit = auto_commit

    @contextmanager
    def _unit_of_work(self) -> Iterator[None]:
        try:
            yield
            if self._auto_commit:
                self._session.commit()
        except Exception:
            if self._auto_commit:
                self._session.rollback()
            raise

    def _require(self, caller: Caller, action: Action) -> None:
        if not caller.can(action):
            logger.warning(
                "permission_denied",
                extra={
                    "actor_id": caller.user_id,
                    "role": caller.role.value,
                    "action": action.value,
                },
            )
            raise PermissionDeniedError(caller.user_id, caller.role.value, action.value)

    def _scoped(self, caller: Caller, kind: EntityKind, entity_id: str):
        """Read one workflow record the caller can see, or raise NotFound."""
        record = self._selector.get_scoped(kind, entity_id, resolve_scope(caller, kind))
        if record is None:
            raise EntityNotFoundError(kind.value, entity_id)
        return record
