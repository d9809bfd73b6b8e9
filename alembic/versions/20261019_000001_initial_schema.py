"""Initial schema with all tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIVE = sa.text('deleted_at IS NULL')


def _uuid(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), nullable=nullable)


def _money(name: str, nullable: bool = False, zero_default: bool = False) -> sa.Column:
    return sa.Column(
        name, sa.Numeric(precision=12, scale=2), nullable=nullable,
        server_default='0' if zero_default else None,
    )


def _timestamps(soft_delete: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]
    if soft_delete:
        columns.append(sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True))
    return columns


def _tenant_scoped() -> list:
    return [
        _uuid('id'),
        _uuid('tenant_id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    ]


def upgrade() -> None:
    # === TENANTS ===
    op.create_table(
        'tenants',
        _uuid('id'),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('subscription_plan', sa.String(length=20), nullable=False, server_default='free'),
        sa.Column('subscription_ends_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    op.create_index('idx_tenants_status', 'tenants', ['status'], postgresql_where=LIVE)

    # === USERS ===
    op.create_table(
        'users',
        _uuid('id'),
        _uuid('tenant_id', nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('lifecycle_state', sa.String(length=20), nullable=False, server_default='ACTIVE'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(soft_delete=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_tenant_id'), 'users', ['tenant_id'])
    op.create_index('idx_users_email_tenant', 'users', ['email', 'tenant_id'], unique=True,
                    postgresql_where=sa.text("lifecycle_state = 'ACTIVE' AND tenant_id IS NOT NULL"))
    op.create_index('idx_users_email_platform', 'users', ['email'], unique=True,
                    postgresql_where=sa.text("lifecycle_state = 'ACTIVE' AND tenant_id IS NULL"))
    op.create_index('idx_users_tenant_role', 'users', ['tenant_id', 'role'])

    # === SYSTEM SETTINGS ===
    op.create_table(
        'system_settings',
        _uuid('id'),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        *_timestamps(soft_delete=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_system_settings_key'), 'system_settings', ['key'], unique=True)

    # === ACADEMIC YEARS ===
    op.create_table(
        'academic_years',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='upcoming'),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index(op.f('ix_academic_years_tenant_id'), 'academic_years', ['tenant_id'])
    op.create_index('idx_academic_years_one_current', 'academic_years', ['tenant_id'], unique=True,
                    postgresql_where=sa.text('is_current AND deleted_at IS NULL'))
    op.create_index('idx_academic_years_tenant_name', 'academic_years', ['tenant_id', 'name'], unique=True,
                    postgresql_where=LIVE)

    # === SUBJECTS ===
    op.create_table(
        'subjects',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subject_type', sa.String(length=20), nullable=False, server_default='theory'),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )
    op.create_index(op.f('ix_subjects_tenant_id'), 'subjects', ['tenant_id'])
    op.create_index('idx_subjects_tenant_code', 'subjects', ['tenant_id', 'code'], unique=True,
                    postgresql_where=LIVE)

    # === SCHOOL CLASSES ===
    op.create_table(
        'school_classes',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('numeric_name', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )
    op.create_index(op.f('ix_school_classes_tenant_id'), 'school_classes', ['tenant_id'])
    op.create_index('idx_school_classes_tenant_name', 'school_classes', ['tenant_id', 'name'], unique=True,
                    postgresql_where=LIVE)

    # === TEACHERS ===
    op.create_table(
        'teachers',
        *_tenant_scoped(),
        _uuid('user_id'),
        sa.Column('employee_id', sa.String(length=50), nullable=False),
        sa.Column('qualification', sa.String(length=255), nullable=True),
        sa.Column('specialization', sa.String(length=255), nullable=True),
        sa.Column('joining_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index(op.f('ix_teachers_tenant_id'), 'teachers', ['tenant_id'])
    op.create_index('idx_teachers_tenant_employee', 'teachers', ['tenant_id', 'employee_id'], unique=True,
                    postgresql_where=LIVE)

    # === SECTIONS ===
    op.create_table(
        'sections',
        *_tenant_scoped(),
        _uuid('class_id'),
        _uuid('academic_year_id'),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='40'),
        _uuid('class_teacher_id', nullable=True),
        sa.Column('room_number', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['class_id'], ['school_classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_teacher_id'], ['teachers.id'], ondelete='SET NULL')
    )
    op.create_index(op.f('ix_sections_tenant_id'), 'sections', ['tenant_id'])
    op.create_index(op.f('ix_sections_class_id'), 'sections', ['class_id'])
    op.create_index(op.f('ix_sections_academic_year_id'), 'sections', ['academic_year_id'])
    op.create_index('idx_sections_class_year_name', 'sections', ['class_id', 'academic_year_id', 'name'],
                    unique=True, postgresql_where=LIVE)

    # === STUDENTS ===
    op.create_table(
        'students',
        *_tenant_scoped(),
        _uuid('user_id'),
        sa.Column('admission_no', sa.String(length=50), nullable=False),
        sa.Column('roll_no', sa.String(length=20), nullable=True),
        _uuid('class_id'),
        _uuid('section_id', nullable=True),
        _uuid('academic_year_id'),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(length=10), nullable=True),
        sa.Column('admission_date', sa.Date(), nullable=True),
        sa.Column('blood_group', sa.String(length=5), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('medical_info', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['school_classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index(op.f('ix_students_tenant_id'), 'students', ['tenant_id'])
    op.create_index(op.f('ix_students_class_id'), 'students', ['class_id'])
    op.create_index('idx_students_tenant_admission_no', 'students', ['tenant_id', 'admission_no'], unique=True)
    op.create_index('idx_students_section', 'students', ['section_id'])

    # === GUARDIANS ===
    op.create_table(
        'guardians',
        *_tenant_scoped(),
        _uuid('user_id', nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('relation', sa.String(length=30), nullable=False, server_default='guardian'),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('occupation', sa.String(length=100), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL')
    )
    op.create_index(op.f('ix_guardians_tenant_id'), 'guardians', ['tenant_id'])

    op.create_table(
        'student_guardians',
        _uuid('id'),
        _uuid('student_id'),
        _uuid('guardian_id'),
        sa.Column('relationship', sa.String(length=30), nullable=False, server_default='guardian'),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_emergency_contact', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('can_pickup', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(soft_delete=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['guardian_id'], ['guardians.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_student_guardians_unique', 'student_guardians', ['student_id', 'guardian_id'], unique=True)
    op.create_index('idx_student_guardians_guardian', 'student_guardians', ['guardian_id'])

    # === FEES ===
    op.create_table(
        'fee_categories',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=30), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('frequency', sa.String(length=20), nullable=False, server_default='yearly'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )
    op.create_index(op.f('ix_fee_categories_tenant_id'), 'fee_categories', ['tenant_id'])
    op.create_index('idx_fee_categories_tenant_code', 'fee_categories', ['tenant_id', 'code'], unique=True,
                    postgresql_where=LIVE)

    op.create_table(
        'fee_structures',
        *_tenant_scoped(),
        _uuid('fee_category_id'),
        _uuid('class_id', nullable=True),
        _uuid('academic_year_id'),
        sa.Column('name', sa.String(length=150), nullable=False),
        _money('amount'),
        sa.Column('due_date', sa.Date(), nullable=True),
        _money('late_fee', zero_default=True),
        sa.Column('grace_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['fee_category_id'], ['fee_categories.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['school_classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE')
    )
    op.create_index(op.f('ix_fee_structures_tenant_id'), 'fee_structures', ['tenant_id'])
    op.create_index('idx_fee_structures_year_class', 'fee_structures', ['academic_year_id', 'class_id'])

    op.create_table(
        'discounts',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=30), nullable=True),
        sa.Column('discount_type', sa.String(length=20), nullable=False),
        _money('value'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )
    op.create_index(op.f('ix_discounts_tenant_id'), 'discounts', ['tenant_id'])

    op.create_table(
        'student_fee_allocations',
        *_tenant_scoped(),
        _uuid('student_id'),
        _uuid('fee_structure_id'),
        _uuid('academic_year_id'),
        _uuid('discount_id', nullable=True),
        _money('original_amount'),
        _money('discount_amount', zero_default=True),
        _money('net_amount'),
        _money('paid_amount', zero_default=True),
        _money('due_amount'),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['fee_structure_id'], ['fee_structures.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['discount_id'], ['discounts.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('student_id', 'fee_structure_id', name='uq_allocation_student_structure')
    )
    op.create_index(op.f('ix_student_fee_allocations_tenant_id'), 'student_fee_allocations', ['tenant_id'])
    op.create_index(op.f('ix_student_fee_allocations_student_id'), 'student_fee_allocations', ['student_id'])
    op.create_index('idx_allocations_tenant_status', 'student_fee_allocations', ['tenant_id', 'status'])

    op.create_table(
        'fee_payments',
        *_tenant_scoped(),
        _uuid('allocation_id'),
        _uuid('student_id'),
        sa.Column('receipt_number', sa.String(length=30), nullable=False),
        _money('amount'),
        _money('late_fee', zero_default=True),
        _money('total_amount'),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('transaction_reference', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
        sa.Column('remarks', sa.Text(), nullable=True),
        _uuid('collected_by', nullable=True),
        sa.Column('flagged_for_review', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('review_reason', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['allocation_id'], ['student_fee_allocations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['collected_by'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('tenant_id', 'receipt_number', name='uq_fee_payments_receipt')
    )
    op.create_index(op.f('ix_fee_payments_tenant_id'), 'fee_payments', ['tenant_id'])
    op.create_index(op.f('ix_fee_payments_student_id'), 'fee_payments', ['student_id'])
    op.create_index('idx_fee_payments_allocation', 'fee_payments', ['allocation_id'])
    op.create_index('idx_fee_payments_tenant_date', 'fee_payments', ['tenant_id', 'payment_date'])

    op.create_table(
        'receipt_sequences',
        _uuid('id'),
        _uuid('tenant_id'),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('last_number', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(soft_delete=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'year', name='uq_receipt_sequences_tenant_year')
    )

    op.create_table(
        'fee_audit_logs',
        _uuid('id'),
        _uuid('tenant_id'),
        _uuid('allocation_id', nullable=True),
        _uuid('payment_id', nullable=True),
        sa.Column('action', sa.String(length=40), nullable=False),
        _money('amount', nullable=True),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        _uuid('performed_by', nullable=True),
        *_timestamps(soft_delete=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['allocation_id'], ['student_fee_allocations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['payment_id'], ['fee_payments.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['performed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_fee_audit_logs_allocation_id'), 'fee_audit_logs', ['allocation_id'])
    op.create_index('idx_fee_audit_logs_tenant_action', 'fee_audit_logs', ['tenant_id', 'action'])

    # === ATTENDANCE ===
    op.create_table(
        'attendances',
        _uuid('id'),
        _uuid('tenant_id'),
        _uuid('student_id'),
        _uuid('class_id'),
        _uuid('section_id', nullable=True),
        _uuid('academic_year_id'),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='present'),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('check_out_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('marked_via', sa.String(length=20), nullable=False, server_default='manual'),
        _uuid('marked_by', nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(soft_delete=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['school_classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['marked_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'date', name='uq_attendance_student_date')
    )
    op.create_index(op.f('ix_attendances_tenant_id'), 'attendances', ['tenant_id'])
    op.create_index('idx_attendance_tenant_date', 'attendances', ['tenant_id', 'date'])
    op.create_index('idx_attendance_section_date', 'attendances', ['section_id', 'date'])

    # === LEAVE REQUESTS ===
    op.create_table(
        'leave_requests',
        *_tenant_scoped(),
        sa.Column('requester_type', sa.String(length=20), nullable=False),
        _uuid('student_id', nullable=True),
        _uuid('staff_user_id', nullable=True),
        sa.Column('leave_type', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        _uuid('applied_by', nullable=True),
        _uuid('reviewed_by', nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['staff_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['applied_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            '(student_id IS NOT NULL AND staff_user_id IS NULL) '
            'OR (student_id IS NULL AND staff_user_id IS NOT NULL)',
            name='ck_leave_requests_one_requester',
        )
    )
    op.create_index(op.f('ix_leave_requests_tenant_id'), 'leave_requests', ['tenant_id'])
    op.create_index('idx_leave_requests_tenant_status', 'leave_requests', ['tenant_id', 'status'])

    # === TIMETABLES ===
    op.create_table(
        'timetable_slots',
        *_tenant_scoped(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('slot_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_break', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
    )
    op.create_index(op.f('ix_timetable_slots_tenant_id'), 'timetable_slots', ['tenant_id'])

    op.create_table(
        'timetable_entries',
        *_tenant_scoped(),
        _uuid('section_id'),
        _uuid('slot_id'),
        _uuid('academic_year_id'),
        sa.Column('day_of_week', sa.String(length=10), nullable=False),
        _uuid('subject_id', nullable=True),
        _uuid('teacher_id', nullable=True),
        sa.Column('room', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['slot_id'], ['timetable_slots.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='SET NULL')
    )
    op.create_index(op.f('ix_timetable_entries_tenant_id'), 'timetable_entries', ['tenant_id'])
    op.create_index('idx_timetable_entries_section_slot', 'timetable_entries',
                    ['section_id', 'slot_id', 'day_of_week', 'academic_year_id'], unique=True,
                    postgresql_where=LIVE)
    op.create_index('idx_timetable_entries_teacher_slot', 'timetable_entries',
                    ['teacher_id', 'slot_id', 'day_of_week', 'academic_year_id'], unique=True,
                    postgresql_where=sa.text('deleted_at IS NULL AND teacher_id IS NOT NULL'))

    # === ADMISSIONS ===
    op.create_table(
        'admission_applications',
        *_tenant_scoped(),
        sa.Column('application_no', sa.String(length=50), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('gender', sa.String(length=10), nullable=False),
        sa.Column('blood_group', sa.String(length=5), nullable=True),
        sa.Column('nationality', sa.String(length=100), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        _uuid('class_id'),
        _uuid('academic_year_id'),
        sa.Column('previous_school', sa.String(length=255), nullable=True),
        sa.Column('previous_class', sa.String(length=100), nullable=True),
        sa.Column('guardian_name', sa.String(length=200), nullable=False),
        sa.Column('guardian_relation', sa.String(length=30), nullable=False),
        sa.Column('guardian_phone', sa.String(length=50), nullable=False),
        sa.Column('guardian_email', sa.String(length=255), nullable=True),
        sa.Column('guardian_occupation', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='pending'),
        sa.Column('interview_date', sa.Date(), nullable=True),
        sa.Column('admin_remarks', sa.Text(), nullable=True),
        _uuid('processed_by', nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        _uuid('student_id', nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['class_id'], ['school_classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='SET NULL')
    )
    op.create_index(op.f('ix_admission_applications_tenant_id'), 'admission_applications', ['tenant_id'])
    op.create_index('idx_admission_applications_tenant_no', 'admission_applications',
                    ['tenant_id', 'application_no'], unique=True)
    op.create_index('idx_admission_applications_tenant_status', 'admission_applications',
                    ['tenant_id', 'status'])


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign key dependencies)
    op.drop_table('admission_applications')
    op.drop_table('timetable_entries')
    op.drop_table('timetable_slots')
    op.drop_table('leave_requests')
    op.drop_table('attendances')
    op.drop_table('fee_audit_logs')
    op.drop_table('receipt_sequences')
    op.drop_table('fee_payments')
    op.drop_table('student_fee_allocations')
    op.drop_table('discounts')
    op.drop_table('fee_structures')
    op.drop_table('fee_categories')
    op.drop_table('student_guardians')
    op.drop_table('guardians')
    op.drop_table('students')
    op.drop_table('sections')
    op.drop_table('teachers')
    op.drop_table('school_classes')
    op.drop_table('subjects')
    op.drop_table('academic_years')
    op.drop_table('system_settings')
    op.drop_table('users')
    op.drop_table('tenants')
