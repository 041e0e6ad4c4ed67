"""
Module: agency_kernel.models.catalog
Responsibility: ORM persistence for colleges and the courses they offer.
    Course fees drive the first-year amount of the transaction created when
    an application completes.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/records.py only.

Failure modes:
    - A course without a "firstYear" fee is valid; the cascade treats the
      missing amount as zero.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import ID_LENGTH, TrackedBase, id_column
from agency_kernel.domain.records import College, Course


class CollegeModel(TrackedBase):
    """College an agency places students with."""

    __tablename__ = "colleges"

    __table_args__ = (
        Index("idx_college_name", "name"),
    )

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    agent_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<College {self.id} {self.name!r}>"

    def to_dto(self) -> College:
        return College(
            id=self.id,
            name=self.name,
            location=self.location,
            agent_id=self.agent_id,
        )


class CourseModel(TrackedBase):
    """
    Course offered by a college.

    fees is a JSON object of per-year amounts, e.g.
    {"total": 150000, "firstYear": 50000, "secondYear": 50000}.
    """

    __tablename__ = "courses"

    __table_args__ = (
        Index("idx_course_name", "course_name"),
        Index("idx_course_college", "college_id"),
    )

    id: Mapped[str] = id_column()
    college_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)
    course_name: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_years: Mapped[int] = mapped_column(nullable=False, default=0)
    fees: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<Course {self.id} {self.course_name!r}>"

    def to_dto(self) -> Course:
        return Course(
            id=self.id,
            course_name=self.course_name,
            college_id=self.college_id,
            duration_years=self.duration_years,
            fees=dict(self.fees or {}),
        )
