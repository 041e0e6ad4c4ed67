"""
Record snapshots (``agency_kernel.domain.records``).

Responsibility
--------------
Frozen value objects for every entity the engine reads or writes.  The
data store returns these snapshots; services never hand live ORM rows to
callers.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions.  No I/O.

Invariants enforced
-------------------
* All monetary fields are ``Decimal`` (never ``float``).
* All dataclasses are ``frozen=True``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class Agent:
    """Agent or sub-agent account.  ``super_agent is None`` => top-level."""
    user_id: str
    name: str
    email: str
    super_agent: str | None = None
    created_at: datetime | None = None

    @property
    def is_top_level(self) -> bool:
        return self.super_agent is None

    @property
    def top_agent_id(self) -> str:
        return self.super_agent or self.user_id


@dataclass(frozen=True)
class Counsellor:
    """Read-only auxiliary account owned by an agent or sub-agent."""
    id: str
    user_id: str
    name: str
    email: str
    phone: str
    parent_id: str
    agent_id: str
    slot: int
    created_at: datetime | None = None


@dataclass(frozen=True)
class College:
    id: str
    name: str
    location: str = ""
    agent_id: str | None = None


@dataclass(frozen=True)
class Course:
    """Course offered by a college.  ``fees`` holds per-year amounts."""
    id: str
    course_name: str
    college_id: str | None = None
    duration_years: int = 0
    fees: dict[str, Any] = field(default_factory=dict)

    @property
    def first_year_fee(self) -> Decimal | None:
        raw = self.fees.get("firstYear") if self.fees else None
        if raw is None or raw == "":
            return None
        return Decimal(str(raw))


@dataclass(frozen=True)
class Application:
    id: str
    student_name: str
    email: str
    phone: str
    preferred_college: str
    preferred_course: str
    status: str
    created_by: str
    superagent_id: str
    subagent_id: str | None = None
    counsellor_id: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Transaction:
    id: str
    application_id: str
    student_name: str
    amount: Decimal
    status: str
    agent_id: str
    subagent_id: str | None = None
    completed_at: datetime | None = None
    description: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Commission:
    id: str
    application_id: str
    transaction_id: str
    amount: Decimal
    status: str
    agent_id: str
    subagent_id: str
    payment_completed_at: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
