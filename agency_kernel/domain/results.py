"""
Workflow result types (``agency_kernel.domain.results``).

Responsibility
--------------
Makes the "log and continue" cascade policy explicit: a status change
reports primary success and the cascade's outcome as separate fields, so
callers and tests can assert on both independently.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from agency_kernel.domain.status import EntityKind


class CascadeAction(str, Enum):
    """What the cascade dispatcher did with the dependent record."""

    CREATED = "created"
    UPDATED = "updated"
    # Status qualified but a precondition was not met (e.g. no sub-agent).
    SKIPPED = "skipped"
    # Status does not trigger any cascade.
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"


@dataclass(frozen=True)
class CascadeFailure:
    """Secondary failure detail carried on a successful primary change."""

    code: str
    message: str
    source_kind: EntityKind
    source_id: str


@dataclass(frozen=True)
class CascadeOutcome:
    action: CascadeAction
    target_kind: EntityKind | None = None
    target_id: str | None = None
    amount: Decimal | None = None
    reason: str = ""
    failure: CascadeFailure | None = None

    @property
    def failed(self) -> bool:
        return self.action is CascadeAction.FAILED

    @classmethod
    def not_applicable(cls, reason: str = "") -> CascadeOutcome:
        return cls(action=CascadeAction.NOT_APPLICABLE, reason=reason)


@dataclass(frozen=True)
class StatusChangeResult:
    """Result of a validated, persisted status change.

    ``success`` describes the primary change only.  Cascade problems live
    in ``cascade.failure`` and never flip ``success``.
    """

    success: bool
    entity_kind: EntityKind
    entity_id: str
    from_status: str
    to_status: str
    record: Any = None
    cascade: CascadeOutcome = CascadeOutcome(action=CascadeAction.NOT_APPLICABLE)

    @property
    def cascade_failed(self) -> bool:
        return self.cascade.failed
