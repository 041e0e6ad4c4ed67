"""
Status and entity-kind enumerations (``agency_kernel.domain.status``).

Responsibility
--------------
Gives every persisted status an enumerated type instead of a free-form
string.  Values are the exact strings stored in the data store, so the
enums compare equal to raw column values (``str`` mix-in).

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from enum import Enum


class EntityKind(str, Enum):
    """Every record kind the data store knows about."""

    AGENT = "agent"
    COUNSELLOR = "counsellor"
    COLLEGE = "college"
    COURSE = "course"
    APPLICATION = "application"
    TRANSACTION = "transaction"
    COMMISSION = "commission"


WORKFLOW_KINDS: frozenset[EntityKind] = frozenset({
    EntityKind.APPLICATION,
    EntityKind.TRANSACTION,
    EntityKind.COMMISSION,
})


class ApplicationStatus(str, Enum):
    """Student application lifecycle states."""

    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"
    DOCUMENTS_UPLOADED = "Documents Uploaded"
    COMPLETED = "Completed"
    # Legacy rows written before "Pending" existed; behaves like Pending.
    PROCESSING = "processing"


class TransactionStatus(str, Enum):
    """Transaction lifecycle states."""

    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class CommissionStatus(str, Enum):
    """Commission payout states (stored lower-case)."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


STATUS_ENUMS: dict[EntityKind, type[Enum]] = {
    EntityKind.APPLICATION: ApplicationStatus,
    EntityKind.TRANSACTION: TransactionStatus,
    EntityKind.COMMISSION: CommissionStatus,
}


def status_value(status: str | Enum) -> str:
    """Return the stored string for a status given as enum or raw string."""
    if isinstance(status, Enum):
        return str(status.value)
    return str(status)
