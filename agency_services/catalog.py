"""
agency_services.catalog -- Resolve the course and college an application
refers to.

Applications store ``preferred_course`` / ``preferred_college`` as an id,
or as a plain display name on rows entered before the catalog existed.
Resolution therefore tries the id first and falls back to a
case-insensitive name match.  A reference that resolves to nothing yields
``None``; callers decide what a missing catalog entry means.
"""

from __future__ import annotations

from agency_kernel.domain.records import College, Course
from agency_kernel.domain.status import EntityKind
from agency_kernel.logging_config import get_logger
from agency_services.data_store import DataStore

logger = get_logger("services.catalog")


class CatalogResolver:
    def __init__(self, store: DataStore):
        self._store = store

    def _resolve(self, kind: EntityKind, reference: str | None, name_field: str):
        if not reference or not str(reference).strip():
            return None
        record = self._store.read_entity(kind, reference)
        if record is not None:
            return record
        record = self._store.find_by_key(
            kind, name_field, str(reference).strip(), case_insensitive=True,
        )
        if record is not None:
            logger.debug(
                "catalog_resolved_by_name",
                extra={"kind": kind.value, "reference": reference, "resolved_id": record.id},
            )
        return record

    def resolve_course(self, reference: str | None) -> Course | None:
        return self._resolve(EntityKind.COURSE, reference, "course_name")

    def resolve_college(self, reference: str | None) -> College | None:
        return self._resolve(EntityKind.COLLEGE, reference, "name")
