"""initial report workflow schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role_enum = sa.Enum('STUDENT', 'SUPERVISOR', 'LEVEL_COORDINATOR', 'HOD', 'ADMIN', name='role')
stage_enum = sa.Enum('PROGRESS_1', 'PROGRESS_2', 'PROGRESS_3', 'FINAL', name='report_stage')
status_enum = sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'FEEDBACK_GIVEN', name='report_status')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('registration_number', sa.String(50), nullable=True),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('level', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_registration_number'), 'users', ['registration_number'], unique=False)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)
    op.create_index(op.f('ix_users_department'), 'users', ['department'], unique=False)
    op.create_index(op.f('ix_users_level'), 'users', ['level'], unique=False)
    op.create_index(op.f('ix_users_is_active'), 'users', ['is_active'], unique=False)

    op.create_table(
        'student_supervisor_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('supervisor_id', sa.Integer(), nullable=False),
        sa.Column('level_coordinator_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], name=op.f('fk_student_supervisor_assignments_student_id_users')),
        sa.ForeignKeyConstraint(['supervisor_id'], ['users.id'], name=op.f('fk_student_supervisor_assignments_supervisor_id_users')),
        sa.ForeignKeyConstraint(['level_coordinator_id'], ['users.id'], name=op.f('fk_student_supervisor_assignments_level_coordinator_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_student_supervisor_assignments')),
    )
    op.create_index(op.f('ix_student_supervisor_assignments_id'), 'student_supervisor_assignments', ['id'], unique=False)
    op.create_index(op.f('ix_student_supervisor_assignments_student_id'), 'student_supervisor_assignments', ['student_id'], unique=False)
    op.create_index(op.f('ix_student_supervisor_assignments_supervisor_id'), 'student_supervisor_assignments', ['supervisor_id'], unique=False)
    op.create_index(op.f('ix_student_supervisor_assignments_level_coordinator_id'), 'student_supervisor_assignments', ['level_coordinator_id'], unique=False)
    op.create_index(op.f('ix_student_supervisor_assignments_is_active'), 'student_supervisor_assignments', ['is_active'], unique=False)
    op.create_index(
        'uq_student_supervisor_assignments_active_student',
        'student_supervisor_assignments',
        ['student_id'],
        unique=True,
        sqlite_where=sa.text('is_active = 1'),
        postgresql_where=sa.text('is_active = true'),
    )

    op.create_table(
        'reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('supervisor_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('report_stage', stage_enum, nullable=False),
        sa.Column('file_url', sa.String(500), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('status', status_enum, nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], name=op.f('fk_reports_student_id_users')),
        sa.ForeignKeyConstraint(['supervisor_id'], ['users.id'], name=op.f('fk_reports_supervisor_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_reports')),
    )
    op.create_index(op.f('ix_reports_id'), 'reports', ['id'], unique=False)
    op.create_index(op.f('ix_reports_student_id'), 'reports', ['student_id'], unique=False)
    op.create_index(op.f('ix_reports_supervisor_id'), 'reports', ['supervisor_id'], unique=False)
    op.create_index(op.f('ix_reports_report_stage'), 'reports', ['report_stage'], unique=False)
    op.create_index(op.f('ix_reports_status'), 'reports', ['status'], unique=False)

    op.create_table(
        'feedback',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('supervisor_id', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('action_taken', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['reports.id'], name=op.f('fk_feedback_report_id_reports')),
        sa.ForeignKeyConstraint(['supervisor_id'], ['users.id'], name=op.f('fk_feedback_supervisor_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_feedback')),
    )
    op.create_index(op.f('ix_feedback_id'), 'feedback', ['id'], unique=False)
    op.create_index(op.f('ix_feedback_report_id'), 'feedback', ['report_id'], unique=False)
    op.create_index(op.f('ix_feedback_supervisor_id'), 'feedback', ['supervisor_id'], unique=False)

    op.create_table(
        'hod_feedback',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('hod_id', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['reports.id'], name=op.f('fk_hod_feedback_report_id_reports')),
        sa.ForeignKeyConstraint(['hod_id'], ['users.id'], name=op.f('fk_hod_feedback_hod_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_hod_feedback')),
    )
    op.create_index(op.f('ix_hod_feedback_id'), 'hod_feedback', ['id'], unique=False)
    op.create_index(op.f('ix_hod_feedback_report_id'), 'hod_feedback', ['report_id'], unique=False)
    op.create_index(op.f('ix_hod_feedback_hod_id'), 'hod_feedback', ['hod_id'], unique=False)

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('payload_json', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['actor_user_id'], ['users.id'], name=op.f('fk_activity_logs_actor_user_id_users'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_activity_logs')),
    )
    op.create_index(op.f('ix_activity_logs_id'), 'activity_logs', ['id'], unique=False)
    op.create_index(op.f('ix_activity_logs_actor_user_id'), 'activity_logs', ['actor_user_id'], unique=False)
    op.create_index(op.f('ix_activity_logs_action'), 'activity_logs', ['action'], unique=False)
    op.create_index(op.f('ix_activity_logs_resource_type'), 'activity_logs', ['resource_type'], unique=False)


def downgrade() -> None:
    op.drop_table('activity_logs')
    op.drop_table('hod_feedback')
    op.drop_table('feedback')
    op.drop_table('reports')
    op.drop_index('uq_student_supervisor_assignments_active_student', table_name='student_supervisor_assignments')
    op.drop_table('student_supervisor_assignments')
    op.drop_table('users')
    status_enum.drop(op.get_bind(), checkfirst=True)
    stage_enum.drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
