"""Teacher staff profile model."""

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolsync.models.base import TenantScopedModel


class Teacher(TenantScopedModel):
    """Staff profile of a teaching user. Login identity lives on User."""

    __tablename__ = "teachers"
    __table_args__ = (
        Index(
            "idx_teachers_tenant_employee",
            "tenant_id",
            "employee_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    qualification: Mapped[str | None] = mapped_column(String(255), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    joining_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    # Relationships
    user = relationship("User", lazy="selectin")

    @property
    def full_name(self) -> str:
        return self.user.full_name if self.user else ""
