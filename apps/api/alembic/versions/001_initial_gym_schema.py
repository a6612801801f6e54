"""initial gym schema

Revision ID: 001
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DAYS = "('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')"
TYPES = "('Gym', 'Class')"


def upgrade() -> None:
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'workout_plans',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('difficulty_level', sa.String(20), nullable=False, server_default='Beginner'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('nic', sa.String(20), nullable=True, unique=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('photo_url', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='inactive'),
        sa.Column(
            'active_plan_id',
            sa.Integer(),
            sa.ForeignKey('workout_plans.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint("status IN ('active', 'expired', 'inactive')", name='ck_members_status'),
    )

    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('check_in_time', sa.DateTime(), nullable=False),
        sa.Column('check_out_time', sa.DateTime(), nullable=True),
        sa.Column('method', sa.String(20), nullable=False, server_default='manual'),
        sa.CheckConstraint("method IN ('manual', 'fingerprint')", name='ck_attendance_method'),
    )
    # Not unique: several open check-ins per member/day are allowed
    op.create_index('ix_attendance_member_date', 'attendance', ['member_id', 'date'])

    op.create_table(
        'biometric_credentials',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('public_key', sa.Text(), nullable=False),
        sa.Column('counter', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('transports', sa.String(255), nullable=True),
        sa.Column('attestation_type', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_biometric_credentials_member_id', 'biometric_credentials', ['member_id'])

    op.create_table(
        'membership_plans',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('duration_months', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )

    op.create_table(
        'memberships',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('membership_plans.id'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'active', 'cancelled', 'expired')", name='ck_memberships_status'
        ),
    )
    op.create_index('ix_memberships_member_id', 'memberships', ['member_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'membership_id',
            sa.Integer(),
            sa.ForeignKey('memberships.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False),
        sa.Column('invoice_number', sa.String(64), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payments_member_id', 'payments', ['member_id'])

    op.create_table(
        'workout_plan_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('workout_plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.String(3), nullable=False),
        sa.Column('activity', sa.String(255), nullable=False),
        sa.Column('time', sa.String(20), nullable=False, server_default='09:00 AM'),
        sa.Column('type', sa.String(10), nullable=False, server_default='Gym'),
        sa.Column('trainer', sa.String(100), nullable=True, server_default='Staff'),
        sa.CheckConstraint(f"day_of_week IN {DAYS}", name='ck_plan_items_day'),
        sa.CheckConstraint(f"type IN {TYPES}", name='ck_plan_items_type'),
    )
    op.create_index('ix_workout_plan_items_plan_id', 'workout_plan_items', ['plan_id'])

    op.create_table(
        'member_schedules',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.String(3), nullable=False),
        sa.Column('activity', sa.String(255), nullable=False),
        sa.Column('time', sa.String(20), nullable=False),
        sa.Column('type', sa.String(10), nullable=False, server_default='Gym'),
        sa.Column('trainer', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint(f"day_of_week IN {DAYS}", name='ck_member_schedules_day'),
        sa.CheckConstraint(f"type IN {TYPES}", name='ck_member_schedules_type'),
    )
    op.create_index('ix_member_schedules_member_id', 'member_schedules', ['member_id'])

    op.create_table(
        'activity_completions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'schedule_id',
            sa.Integer(),
            sa.ForeignKey('member_schedules.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('member_id', 'schedule_id', 'completion_date', name='unique_completion'),
    )


def downgrade() -> None:
    op.drop_table('activity_completions')
    op.drop_index('ix_member_schedules_member_id', table_name='member_schedules')
    op.drop_table('member_schedules')
    op.drop_index('ix_workout_plan_items_plan_id', table_name='workout_plan_items')
    op.drop_table('workout_plan_items')
    op.drop_index('ix_payments_member_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_memberships_member_id', table_name='memberships')
    op.drop_table('memberships')
    op.drop_table('membership_plans')
    op.drop_index('ix_biometric_credentials_member_id', table_name='biometric_credentials')
    op.drop_table('biometric_credentials')
    op.drop_index('ix_attendance_member_date', table_name='attendance')
    op.drop_table('attendance')
    op.drop_table('members')
    op.drop_table('workout_plans')
    op.drop_table('users')
    op.drop_table('roles')
