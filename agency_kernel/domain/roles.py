"""
Caller roles and mutation permissions (``agency_kernel.domain.roles``).

Responsibility
--------------
Models who is calling (top-level agent, sub-agent, counsellor) as an
explicit value passed into every service call, and decides which
mutations each role may attempt at all.  Whether a particular status
change is legal is the transition table's job; this module only answers
"may this role ever do that".

Architecture position
---------------------
**Kernel domain layer** -- pure.  ZERO I/O.  Callers are built by
``agency_services.callers.resolve_caller`` from stored records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from agency_kernel.domain.records import Agent, Counsellor


class CallerRole(str, Enum):
    AGENT = "agent"
    SUB_AGENT = "sub_agent"
    COUNSELLOR = "counsellor"


class Action(str, Enum):
    """Mutations gated by role."""

    CREATE_APPLICATION = "create_application"
    CHANGE_APPLICATION_STATUS = "change_application_status"
    CHANGE_TRANSACTION_STATUS = "change_transaction_status"
    EDIT_TRANSACTION = "edit_transaction"
    CHANGE_COMMISSION_STATUS = "change_commission_status"
    EDIT_COMMISSION = "edit_commission"
    MANAGE_COUNSELLORS = "manage_counsellors"
    CREATE_SUB_AGENT = "create_sub_agent"


ROLE_PERMISSIONS: dict[CallerRole, frozenset[Action]] = {
    CallerRole.AGENT: frozenset(Action),
    CallerRole.SUB_AGENT: frozenset({
        Action.CREATE_APPLICATION,
        Action.CHANGE_APPLICATION_STATUS,
        # Sub-agents reach the restricted table, which is empty for transactions.
        Action.CHANGE_TRANSACTION_STATUS,
        Action.MANAGE_COUNSELLORS,
    }),
    CallerRole.COUNSELLOR: frozenset(),
}


@dataclass(frozen=True)
class Caller:
    """The identity on whose behalf an operation runs.

    ``top_agent_id`` is the owning top-level agent of the caller's
    hierarchy (the caller itself for a top-level agent).
    """
    user_id: str
    role: CallerRole
    top_agent_id: str
    parent_id: str | None = None

    @property
    def is_privileged(self) -> bool:
        return self.role is CallerRole.AGENT

    def can(self, action: Action) -> bool:
        return action in ROLE_PERMISSIONS.get(self.role, frozenset())

    @classmethod
    def from_agent(cls, agent: Agent) -> Caller:
        if agent.is_top_level:
            return cls(user_id=agent.user_id, role=CallerRole.AGENT, top_agent_id=agent.user_id)
        return cls(
            user_id=agent.user_id,
            role=CallerRole.SUB_AGENT,
            top_agent_id=agent.top_agent_id,
            parent_id=agent.super_agent,
        )

    @classmethod
    def from_counsellor(cls, counsellor: Counsellor) -> Caller:
        return cls(
            user_id=counsellor.user_id,
            role=CallerRole.COUNSELLOR,
            top_agent_id=counsellor.agent_id,
            parent_id=counsellor.parent_id,
        )
