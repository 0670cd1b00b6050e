import uuid
from datetime import date, time

from sqlalchemy import Date, ForeignKey, String, Text, Time
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, CompanyScopedMixin, TimestampMixin, UUIDMixin

VISIT_STATUSES = ("scheduled", "in_progress", "completed", "cancelled")


class Application(Base, UUIDMixin, TimestampMixin, CompanyScopedMixin):
    """A scheduled pest-control visit at one customer branch."""

    __tablename__ = "applications"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True
    )
    branch_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("branches.id"), nullable=False, index=True
    )
    operator_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("operators.id"), nullable=True, index=True
    )
    application_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    scheduled_time: Mapped[time] = mapped_column(Time, nullable=False)
    service_types: Mapped[list[str]] = mapped_column(ARRAY(String(100)), nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )

    customer = relationship("Customer", lazy="raise")
    branch = relationship("Branch", lazy="raise")
    operator = relationship("Operator", lazy="raise")
