"""
Module: agency_kernel.models.application
Responsibility: ORM persistence for student applications, the primary
    workflow entity.  Completing an application cascades into a transaction.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ value types only.

Invariants enforced:
    - status is one of the ApplicationStatus values (DB check constraint);
      which transitions are legal is decided by domain/workflow.py.
    - superagent_id always names the owning top-level agent.

Failure modes:
    - IntegrityError when status is outside the enumerated set.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import ID_LENGTH, TrackedBase, id_column
from agency_kernel.domain.records import Application
from agency_kernel.domain.status import ApplicationStatus

_STATUS_SQL = ", ".join(f"'{s.value}'" for s in ApplicationStatus)


class ApplicationModel(TrackedBase):
    """
    Student application owned by a top-level agent.

    Guarantees:
        - created_by is the agent or sub-agent that entered the application.
        - subagent_id is the sub-agent the application is assigned to, if any.
        - counsellor_id is the counsellor (user id) following the student.
        - preferred_college / preferred_course hold an id, or a plain name
          on legacy rows.
    """

    __tablename__ = "applications"

    __table_args__ = (
        CheckConstraint(
            f"status IN ({_STATUS_SQL})",
            name="ck_application_valid_status",
        ),
        Index("idx_application_superagent", "superagent_id"),
        Index("idx_application_subagent", "subagent_id"),
        Index("idx_application_counsellor", "counsellor_id"),
    )

    id: Mapped[str] = id_column()
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    preferred_college: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    preferred_course: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=ApplicationStatus.PENDING.value,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    subagent_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)
    superagent_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    counsellor_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<Application {self.id} status={self.status}>"

    def to_dto(self) -> Application:
        """Convert ORM model to frozen domain record."""
        return Application(
            id=self.id,
            student_name=self.student_name,
            email=self.email,
            phone=self.phone,
            preferred_college=self.preferred_college,
            preferred_course=self.preferred_course,
            status=self.status,
            created_by=self.created_by,
            superagent_id=self.superagent_id,
            subagent_id=self.subagent_id,
            counsellor_id=self.counsellor_id,
            notes=self.notes,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
