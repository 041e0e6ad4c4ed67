"""
Module: agency_kernel.models.agent
Responsibility: ORM persistence for the account hierarchy: top-level agents,
    sub-agents, and the counsellors they own.
Architecture position: Kernel > Models.  May import from db/base.py and the
    pure record types in domain/records.py only.

Invariants enforced:
    - Hierarchy depth is two: a row whose super_agent is set is a sub-agent,
      and sub-agents never own sub-agents (enforced by AgentService).
    - Counsellor cap: UNIQUE(parent_id, slot) with slot in 1..cap turns the
      per-parent counsellor cap into an atomic conditional write.

Failure modes:
    - IntegrityError on duplicate user_id.
    - IntegrityError on (parent_id, slot) collision when two counsellors are
      created concurrently for the same parent.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import ID_LENGTH, TrackedBase, id_column
from agency_kernel.domain.records import Agent, Counsellor


class AgentModel(TrackedBase):
    """
    Agent account keyed by the auth provider's user id.

    Guarantees:
        - super_agent is NULL for top-level agents.
        - super_agent holds the owning top-level agent's user_id otherwise.
    """

    __tablename__ = "agents"

    __table_args__ = (
        Index("idx_agent_super_agent", "super_agent"),
    )

    user_id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    super_agent: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<Agent {self.user_id} super_agent={self.super_agent}>"

    def to_dto(self) -> Agent:
        """Convert ORM model to frozen domain record."""
        return Agent(
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            super_agent=self.super_agent,
            created_at=self.created_at,
        )


class CounsellorModel(TrackedBase):
    """
    Read-only auxiliary account created by an agent or sub-agent.

    Guarantees:
        - parent_id is the agent or sub-agent that created the counsellor.
        - agent_id is the top-level agent of that hierarchy.
        - At most one counsellor holds a given slot under a parent.
    """

    __tablename__ = "counsellors"

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_counsellor_user_id"),
        UniqueConstraint("parent_id", "slot", name="uq_counsellor_parent_slot"),
        CheckConstraint("slot >= 1", name="ck_counsellor_slot_positive"),
        Index("idx_counsellor_agent", "agent_id"),
    )

    id: Mapped[str] = id_column()
    user_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    parent_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    agent_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    slot: Mapped[int] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Counsellor {self.user_id} parent={self.parent_id} slot={self.slot}>"

    def to_dto(self) -> Counsellor:
        return Counsellor(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            parent_id=self.parent_id,
            agent_id=self.agent_id,
            slot=self.slot,
            created_at=self.created_at,
        )
