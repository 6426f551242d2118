"""
Module: inventory_kernel.db.base
Responsibility: Declarative base shared by the server tables (products and
    their history) and the client table (queued actions), plus the two
    portable column types they rely on.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    MUST NOT import from models/, services/, selectors/ or outer packages.

Invariants enforced:
    - Primary keys are UUIDs stored as 36-character strings, so SQLite and
      PostgreSQL hold identical values.  Queued actions use the id the
      client generated at enqueue time; everything else gets uuid4().
    - Datetimes come back timezone-aware in UTC on every backend.  SQLite
      drops tzinfo on storage; replay ordering and audit backdating compare
      these values, so naive/aware mixing must never reach the domain.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UUIDString(TypeDecorator):
    """UUID column stored as its canonical string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class UTCDateTime(TypeDecorator):
    """Aware datetime column.  Naive input is read as UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return _as_utc(value)

    def process_result_value(self, value, dialect):
        return _as_utc(value)


class Base(DeclarativeBase):
    """
    Root of every mapped class.

    Annotation defaults: ``Decimal`` is a shelf price (Numeric(12, 2)),
    ``datetime`` is UTCDateTime, ``UUID`` is UUIDString and ``int`` is
    BigInteger unless a column says otherwise.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(12, 2),
        datetime: UTCDateTime(),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Mutable rows that record who created them and who touched them last.

    ``created_at`` / ``updated_at`` are filled by the database;
    ``updated_at`` moves on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
