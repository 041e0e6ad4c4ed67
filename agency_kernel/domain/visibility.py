"""
Visibility / ownership scopes (``agency_kernel.domain.visibility``).

Responsibility
--------------
Resolves which applications, transactions and commissions a caller may
see or mutate, from the ownership chain agent -> sub-agent -> counsellor.
A scope is data (a disjunction of equality conjunctions), so the same
rules drive SQL filtering in ``RecordSelector`` and in-memory checks via
``VisibilityScope.matches``.

Architecture position
---------------------
**Kernel domain layer** -- pure.  ZERO I/O.

Rules
-----
* Top-level agent: everything whose ``superagent_id`` (applications) or
  ``agent_id`` (transactions, commissions) is the agent itself.
* Sub-agent: applications under the same top-level agent that it created
  or is assigned to; transactions and commissions naming it as
  ``subagent_id``.
* Counsellor: every application under its top-level agent; transactions
  of that agent whose application is assigned to the counsellor; no
  commissions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from agency_kernel.domain.roles import Caller, CallerRole
from agency_kernel.domain.status import EntityKind


@dataclass(frozen=True)
class Clause:
    """Conjunction of ``field == value`` tests.

    ``via_application`` tests apply to the application linked through the
    record's ``application_id`` (used for counsellor transaction scopes).
    """
    conditions: tuple[tuple[str, str], ...]
    via_application: tuple[tuple[str, str], ...] = ()

    def matches(self, record: Any, application: Any = None) -> bool:
        for field_name, value in self.conditions:
            if getattr(record, field_name, None) != value:
                return False
        if self.via_application:
            if application is None:
                return False
            for field_name, value in self.via_application:
                if getattr(application, field_name, None) != value:
                    return False
        return True


@dataclass(frozen=True)
class VisibilityScope:
    """Records matching ANY clause are visible.  No clauses => nothing is."""
    entity_kind: EntityKind
    any_of: tuple[Clause, ...]

    @property
    def is_denied(self) -> bool:
        return not self.any_of

    @property
    def needs_application(self) -> bool:
        return any(c.via_application for c in self.any_of)

    def matches(self, record: Any, application: Any = None) -> bool:
        return any(c.matches(record, application) for c in self.any_of)

    @classmethod
    def deny(cls, entity_kind: EntityKind) -> VisibilityScope:
        return cls(entity_kind=entity_kind, any_of=())


def _agent_scope(caller: Caller, kind: EntityKind) -> VisibilityScope:
    owner_field = "superagent_id" if kind is EntityKind.APPLICATION else "agent_id"
    return VisibilityScope(kind, (Clause(((owner_field, caller.user_id),)),))


def _sub_agent_scope(caller: Caller, kind: EntityKind) -> VisibilityScope:
    if kind is EntityKind.APPLICATION:
        top = ("superagent_id", caller.top_agent_id)
        return VisibilityScope(kind, (
            Clause((top, ("subagent_id", caller.user_id))),
            Clause((top, ("created_by", caller.user_id))),
        ))
    return VisibilityScope(kind, (Clause((("subagent_id", caller.user_id),)),))


def _counsellor_scope(caller: Caller, kind: EntityKind) -> VisibilityScope:
    if kind is EntityKind.APPLICATION:
        return VisibilityScope(kind, (Clause((("superagent_id", caller.top_agent_id),)),))
    if kind is EntityKind.TRANSACTION:
        return VisibilityScope(kind, (
            Clause(
                (("agent_id", caller.top_agent_id),),
                via_application=(("counsellor_id", caller.user_id),),
            ),
        ))
    return VisibilityScope.deny(kind)


_RESOLVERS = {
    CallerRole.AGENT: _agent_scope,
    CallerRole.SUB_AGENT: _sub_agent_scope,
    CallerRole.COUNSELLOR: _counsellor_scope,
}


def resolve_scope(caller: Caller, entity_kind: EntityKind) -> VisibilityScope:
    """Return the scope of ``entity_kind`` records visible to ``caller``.

    Kinds outside the workflow (agents, colleges, ...) resolve to a denied
    scope; they are looked up directly, not through visibility.
    """
    if entity_kind not in (
        EntityKind.APPLICATION,
        EntityKind.TRANSACTION,
        EntityKind.COMMISSION,
    ):
        return VisibilityScope.deny(entity_kind)
    resolver = _RESOLVERS.get(caller.role)
    if resolver is None:
        return VisibilityScope.deny(entity_kind)
    return resolver(caller, entity_kind)
