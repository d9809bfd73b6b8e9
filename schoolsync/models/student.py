"""Student model and related entities."""

import uuid
from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid_extensions import uuid7

from schoolsync.models.base import Base, TenantScopedModel, TimestampMixin


class Gender(str, Enum):
    """Gender options."""

    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class StudentStatus(str, Enum):
    """Enrolment status of a student."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"
    TRANSFERRED = "transferred"


class Student(TenantScopedModel):
    """Student profile. Identity and login live on the linked User."""

    __tablename__ = "students"
    __table_args__ = (
        Index(
            "idx_students_tenant_admission_no",
            "tenant_id",
            "admission_no",
            unique=True,
        ),
        Index("idx_students_section", "section_id"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    admission_no: Mapped[str] = mapped_column(String(50), nullable=False)
    roll_no: Mapped[str | None] = mapped_column(String(20), nullable=True)
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("school_classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    section_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("sections.id", ondelete="SET NULL"),
        nullable=True,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
    )
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    admission_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    blood_group: Mapped[str | None] = mapped_column(String(5), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    medical_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StudentStatus.ACTIVE.value,
    )

    # Relationships
    user = relationship("User", lazy="selectin")
    guardian_links = relationship(
        "StudentGuardian",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return self.user.full_name if self.user else ""

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None and self.status == StudentStatus.ACTIVE.value


class Guardian(TenantScopedModel):
    """A parent or guardian of one or more students."""

    __tablename__ = "guardians"

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    relation: Mapped[str] = mapped_column(String(30), nullable=False, default="guardian")
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class StudentGuardian(Base, TimestampMixin):
    """Join table linking students to guardians with relationship metadata."""

    __tablename__ = "student_guardians"
    __table_args__ = (
        Index("idx_student_guardians_unique", "student_id", "guardian_id", unique=True),
        Index("idx_student_guardians_guardian", "guardian_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    guardian_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("guardians.id", ondelete="CASCADE"),
        nullable=False,
    )
    relationship_type: Mapped[str] = mapped_column(
        "relationship",  # Keep DB column name as 'relationship'
        String(30),
        nullable=False,
        default="guardian",
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_emergency_contact: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    can_pickup: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    guardian = relationship("Guardian", lazy="selectin")
