"""
Role-scoped status workflows (``agency_kernel.domain.workflow``).

Responsibility
--------------
Declares one state machine per (entity kind, role tier) and compiles them
into immutable lookup tables keyed by ``(EntityKind, status)``.  The
transition validator is a pure membership test against those tables.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Unknown kinds or statuses resolve to an empty allowed set (fail closed).
* For every status, the restricted table's allowed set is a subset of the
  privileged table's allowed set.
* Privileged reversals (Completed -> Verified, Completed -> Documents
  Uploaded, Rejected -> Pending, ...) model real correction workflows and
  are part of the table, not exceptions to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from agency_kernel.domain.status import (
    STATUS_ENUMS,
    ApplicationStatus,
    CommissionStatus,
    EntityKind,
    TransactionStatus,
    status_value,
)


@dataclass(frozen=True)
class Transition:
    """A permitted status change.

    ``reverses=True`` marks a backwards move kept for corrections; only
    privileged workflows may declare one.
    """
    from_state: str
    to_state: str
    reverses: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for one entity kind and role tier.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    entity_kind: EntityKind
    privileged: bool
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.from_state!r} -> "
                    f"{t.to_state!r} references an undeclared state"
                )
        expected = tuple(s.value for s in STATUS_ENUMS[self.entity_kind])
        if set(self.states) != set(expected):
            raise ValueError(
                f"Workflow {self.name}: states must be the {self.entity_kind.value} "
                f"statuses {expected!r}"
            )
        if not self.privileged:
            for t in self.transitions:
                if t.reverses:
                    raise ValueError(
                        f"Workflow {self.name}: reversal {t.from_state!r} -> "
                        f"{t.to_state!r} is reserved for privileged callers"
                    )

    @property
    def reversals(self) -> tuple[Transition, ...]:
        return tuple(t for t in self.transitions if t.reverses)

    def allowed_from(self, state: str) -> frozenset[str]:
        return frozenset(t.to_state for t in self.transitions if t.from_state == state)

    @property
    def terminal_states(self) -> tuple[str, ...]:
        """States with no outgoing transitions in this workflow."""
        sources = {t.from_state for t in self.transitions}
        return tuple(s for s in self.states if s not in sources)


_APP = ApplicationStatus
_TXN = TransactionStatus
_COM = CommissionStatus

_APPLICATION_STATES = tuple(s.value for s in ApplicationStatus)
_TRANSACTION_STATES = tuple(s.value for s in TransactionStatus)
_COMMISSION_STATES = tuple(s.value for s in CommissionStatus)


# -----------------------------------------------------------------------------
# Application
# -----------------------------------------------------------------------------

AGENT_APPLICATION_WORKFLOW = Workflow(
    name="application_agent",
    entity_kind=EntityKind.APPLICATION,
    privileged=True,
    initial_state=_APP.PENDING.value,
    states=_APPLICATION_STATES,
    transitions=(
        Transition(_APP.PENDING.value, _APP.VERIFIED.value),
        Transition(_APP.PENDING.value, _APP.REJECTED.value),
        Transition(_APP.PROCESSING.value, _APP.VERIFIED.value),
        Transition(_APP.PROCESSING.value, _APP.REJECTED.value),
        Transition(_APP.VERIFIED.value, _APP.DOCUMENTS_UPLOADED.value),
        Transition(_APP.VERIFIED.value, _APP.REJECTED.value),
        Transition(_APP.REJECTED.value, _APP.VERIFIED.value, reverses=True),
        Transition(_APP.REJECTED.value, _APP.PENDING.value, reverses=True),
        Transition(_APP.DOCUMENTS_UPLOADED.value, _APP.COMPLETED.value),
        Transition(_APP.DOCUMENTS_UPLOADED.value, _APP.VERIFIED.value, reverses=True),
        Transition(_APP.COMPLETED.value, _APP.DOCUMENTS_UPLOADED.value, reverses=True),
        Transition(_APP.COMPLETED.value, _APP.VERIFIED.value, reverses=True),
    ),
)

RESTRICTED_APPLICATION_WORKFLOW = Workflow(
    name="application_restricted",
    entity_kind=EntityKind.APPLICATION,
    privileged=False,
    initial_state=_APP.PENDING.value,
    states=_APPLICATION_STATES,
    transitions=(
        Transition(_APP.VERIFIED.value, _APP.DOCUMENTS_UPLOADED.value),
    ),
)


# -----------------------------------------------------------------------------
# Transaction
# -----------------------------------------------------------------------------

AGENT_TRANSACTION_WORKFLOW = Workflow(
    name="transaction_agent",
    entity_kind=EntityKind.TRANSACTION,
    privileged=True,
    initial_state=_TXN.PENDING.value,
    states=_TRANSACTION_STATES,
    transitions=(
        Transition(_TXN.PENDING.value, _TXN.COMPLETED.value),
        Transition(_TXN.PENDING.value, _TXN.CANCELLED.value),
        Transition(_TXN.COMPLETED.value, _TXN.PENDING.value, reverses=True),
        Transition(_TXN.CANCELLED.value, _TXN.PENDING.value, reverses=True),
    ),
)

RESTRICTED_TRANSACTION_WORKFLOW = Workflow(
    name="transaction_restricted",
    entity_kind=EntityKind.TRANSACTION,
    privileged=False,
    initial_state=_TXN.PENDING.value,
    states=_TRANSACTION_STATES,
    transitions=(),
)


# -----------------------------------------------------------------------------
# Commission
# -----------------------------------------------------------------------------

AGENT_COMMISSION_WORKFLOW = Workflow(
    name="commission_agent",
    entity_kind=EntityKind.COMMISSION,
    privileged=True,
    initial_state=_COM.PENDING.value,
    states=_COMMISSION_STATES,
    transitions=(
        Transition(_COM.PENDING.value, _COM.COMPLETED.value),
        Transition(_COM.PENDING.value, _COM.CANCELLED.value),
        Transition(_COM.COMPLETED.value, _COM.PENDING.value, reverses=True),
        Transition(_COM.CANCELLED.value, _COM.PENDING.value, reverses=True),
    ),
)

RESTRICTED_COMMISSION_WORKFLOW = Workflow(
    name="commission_restricted",
    entity_kind=EntityKind.COMMISSION,
    privileged=False,
    initial_state=_COM.PENDING.value,
    states=_COMMISSION_STATES,
    transitions=(),
)


ALL_WORKFLOWS: tuple[Workflow, ...] = (
    AGENT_APPLICATION_WORKFLOW,
    RESTRICTED_APPLICATION_WORKFLOW,
    AGENT_TRANSACTION_WORKFLOW,
    RESTRICTED_TRANSACTION_WORKFLOW,
    AGENT_COMMISSION_WORKFLOW,
    RESTRICTED_COMMISSION_WORKFLOW,
)


# -----------------------------------------------------------------------------
# Compiled lookup tables
# -----------------------------------------------------------------------------

TransitionTable = Mapping[tuple[EntityKind, str], frozenset[str]]


def compile_table(workflows: tuple[Workflow, ...]) -> TransitionTable:
    """Flatten workflows into an immutable ``(kind, status) -> next`` map.

    Every declared state gets an entry, so a known state with no outgoing
    transitions maps to an empty set rather than being absent.
    """
    table: dict[tuple[EntityKind, str], frozenset[str]] = {}
    for wf in workflows:
        for state in wf.states:
            table[(wf.entity_kind, state)] = wf.allowed_from(state)
    return MappingProxyType(table)


PRIVILEGED_TRANSITIONS: TransitionTable = compile_table(
    tuple(wf for wf in ALL_WORKFLOWS if wf.privileged)
)
RESTRICTED_TRANSITIONS: TransitionTable = compile_table(
    tuple(wf for wf in ALL_WORKFLOWS if not wf.privileged)
)


def _coerce_kind(entity_kind: EntityKind | str) -> EntityKind | None:
    try:
        return EntityKind(status_value(entity_kind))
    except ValueError:
        return None


def allowed_transitions(
    entity_kind: EntityKind | str,
    current_status: str | Enum,
    caller_is_privileged: bool,
) -> frozenset[str]:
    """Statuses reachable from ``current_status`` for the given role tier."""
    kind = _coerce_kind(entity_kind)
    if kind is None:
        return frozenset()
    table = PRIVILEGED_TRANSITIONS if caller_is_privileged else RESTRICTED_TRANSITIONS
    return table.get((kind, status_value(current_status)), frozenset())


def is_valid_transition(
    entity_kind: EntityKind | str,
    current_status: str | Enum,
    requested_status: str | Enum,
    caller_is_privileged: bool,
) -> bool:
    """True iff ``requested_status`` is in the role's allowed set."""
    allowed = allowed_transitions(entity_kind, current_status, caller_is_privileged)
    return status_value(requested_status) in allowed
