"""
Module: agency_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the text identifier convention, a type annotation map for consistent column
    types, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Text identifiers: accounts are keyed by the auth provider's user id
      (opaque text), so every primary key is String(64).  New rows default
      to a uuid4 string.
    - Decimal precision: Decimal maps to Numeric(18, 2).  NEVER use float
      for monetary amounts.
    - Audit timestamps: TrackedBase provides created_at and updated_at.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

ID_LENGTH = 64


def new_id() -> str:
    """Default primary key for rows created by the engine."""
    return str(uuid4())


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - Decimal maps to Numeric(18, 2).
        - datetime maps to DateTime(timezone=True).
        - str maps to String(255) unless a model overrides the column.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        str: String(255),
    }


class TrackedBase(Base):
    """
    Abstract base with audit timestamps.

    Guarantees:
        - created_at is set to server NOW() on INSERT and never changes.
        - updated_at is set on INSERT and auto-updates on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def id_column(**kwargs) -> Mapped[str]:
    """Primary key column with the shared text id convention."""
    return mapped_column(String(ID_LENGTH), primary_key=True, default=new_id, **kwargs)
