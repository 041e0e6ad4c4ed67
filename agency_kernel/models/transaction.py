"""
Module: agency_kernel.models.transaction
Responsibility: ORM persistence for payment transactions and the commissions
    derived from them.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ value types only.

Invariants enforced:
    - At most one transaction per application: UNIQUE(application_id).
      A concurrent second insert fails and the cascade falls back to
      updating the existing row.
    - At most one commission per transaction: UNIQUE(transaction_id).
    - Amounts are Numeric(18, 2) and never negative.
    - completed_at / payment_completed_at are set only while the record is
      in its completed status (maintained by StatusWorkflowService).

Failure modes:
    - IntegrityError on duplicate application_id / transaction_id.
    - IntegrityError on a status outside the enumerated set.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import ID_LENGTH, TrackedBase, id_column
from agency_kernel.domain.records import Commission, Transaction
from agency_kernel.domain.status import CommissionStatus, TransactionStatus

_TXN_STATUS_SQL = ", ".join(f"'{s.value}'" for s in TransactionStatus)
_COM_STATUS_SQL = ", ".join(f"'{s.value}'" for s in CommissionStatus)


class TransactionModel(TrackedBase):
    """
    Payment owed for a completed application.

    Guarantees:
        - agent_id is the owning top-level agent.
        - subagent_id is copied verbatim from the application.
    """

    __tablename__ = "transactions"

    __table_args__ = (
        UniqueConstraint("application_id", name="uq_transaction_application"),
        CheckConstraint(
            f"status IN ({_TXN_STATUS_SQL})",
            name="ck_transaction_valid_status",
        ),
        CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
        Index("idx_transaction_agent", "agent_id"),
        Index("idx_transaction_subagent", "subagent_id"),
    )

    id: Mapped[str] = id_column()
    application_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=TransactionStatus.PENDING.value,
    )
    agent_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    subagent_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction {self.id} app={self.application_id} {self.amount} {self.status}>"

    def to_dto(self) -> Transaction:
        """Convert ORM model to frozen domain record."""
        return Transaction(
            id=self.id,
            application_id=self.application_id,
            student_name=self.student_name,
            amount=Decimal(str(self.amount)),
            status=self.status,
            agent_id=self.agent_id,
            subagent_id=self.subagent_id,
            completed_at=self.completed_at,
            description=self.description,
            notes=self.notes,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class CommissionModel(TrackedBase):
    """
    Commission owed to a sub-agent for a completed transaction.

    Guarantees:
        - subagent_id is never NULL; transactions without a sub-agent do
          not produce commissions.
    """

    __tablename__ = "commissions"

    __table_args__ = (
        UniqueConstraint("transaction_id", name="uq_commission_transaction"),
        CheckConstraint(
            f"status IN ({_COM_STATUS_SQL})",
            name="ck_commission_valid_status",
        ),
        CheckConstraint("amount >= 0", name="ck_commission_amount_non_negative"),
        Index("idx_commission_agent", "agent_id"),
        Index("idx_commission_subagent", "subagent_id"),
    )

    id: Mapped[str] = id_column()
    application_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=CommissionStatus.PENDING.value,
    )
    agent_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    subagent_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    payment_completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Commission {self.id} txn={self.transaction_id} {self.amount} {self.status}>"

    def to_dto(self) -> Commission:
        return Commission(
            id=self.id,
            application_id=self.application_id,
            transaction_id=self.transaction_id,
            amount=Decimal(str(self.amount)),
            status=self.status,
            agent_id=self.agent_id,
            subagent_id=self.subagent_id,
            payment_completed_at=self.payment_completed_at,
            notes=self.notes,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
